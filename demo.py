from datetime import datetime

from sequin import ConsumerOptions, SequinClient, SequinError

if __name__ == "__main__":
    # talks to SEQUIN_URL, or http://localhost:7376 when unset
    with SequinClient() as client:
        stream = client.create_stream('my-stream')
        consumer = client.create_consumer('my-stream', 'my-consumer', 'demo.>',
                                          ConsumerOptions(ack_wait_ms=10000, max_deliver=3))

        for i in range(10):
            client.send_message('my-stream', f'demo.{i}', {'msg': 'hello', 'dt': str(datetime.now())})

        while received := client.receive_messages('my-stream', 'my-consumer', batch_size=4):
            for item in received:
                print(item.message.seq, item.message.key, item.message.data)
            client.ack_messages('my-stream', 'my-consumer', [item.ack_id for item in received])

        try:
            client.send_message('no-such-stream', 'demo.0', 'lost')
        except SequinError as e:
            print(f'expected failure: status={e.status}, summary={e.summary}')

        client.delete_consumer('my-stream', 'my-consumer')
        client.delete_stream(stream.id)
