"""One function per Sequin operation, each against the configured server.

Every call opens a short-lived SequinClient, so nothing is shared between calls.
Pass base_url to target a server other than SEQUIN_URL.
"""
from typing import Any, List, Mapping, Optional, Sequence, Union

from sequin.client import MessageInput, SequinClient
from sequin.models import (Consumer, ConsumerOptions, DeleteResult, ReceivedMessage, SendResult, Stream,
                           StreamOptions)


def send_message(stream: str, key: str, data: Any, base_url: str = None) -> SendResult:
    with SequinClient(base_url) as client:
        return client.send_message(stream, key, data)


def send_messages(stream: str, messages: Sequence[MessageInput], base_url: str = None) -> SendResult:
    with SequinClient(base_url) as client:
        return client.send_messages(stream, messages)


def receive_message(stream: str, consumer: str, base_url: str = None) -> Optional[ReceivedMessage]:
    with SequinClient(base_url) as client:
        return client.receive_message(stream, consumer)


def receive_messages(stream: str, consumer: str, batch_size: int = None,
                     base_url: str = None) -> List[ReceivedMessage]:
    with SequinClient(base_url) as client:
        return client.receive_messages(stream, consumer, batch_size=batch_size)


def ack_message(stream: str, consumer: str, ack_id: str, base_url: str = None):
    with SequinClient(base_url) as client:
        client.ack_message(stream, consumer, ack_id)


def ack_messages(stream: str, consumer: str, ack_ids: Sequence[str], base_url: str = None):
    with SequinClient(base_url) as client:
        client.ack_messages(stream, consumer, ack_ids)


def nack_message(stream: str, consumer: str, ack_id: str, base_url: str = None):
    with SequinClient(base_url) as client:
        client.nack_message(stream, consumer, ack_id)


def nack_messages(stream: str, consumer: str, ack_ids: Sequence[str], base_url: str = None):
    with SequinClient(base_url) as client:
        client.nack_messages(stream, consumer, ack_ids)


def create_stream(name: str, options: Union[StreamOptions, Mapping[str, Any]] = None,
                  base_url: str = None) -> Stream:
    with SequinClient(base_url) as client:
        return client.create_stream(name, options)


def delete_stream(stream: str, base_url: str = None) -> DeleteResult:
    with SequinClient(base_url) as client:
        return client.delete_stream(stream)


def create_consumer(stream: str, name: str, filter_key_pattern: str,
                    options: Union[ConsumerOptions, Mapping[str, Any]] = None, base_url: str = None) -> Consumer:
    with SequinClient(base_url) as client:
        return client.create_consumer(stream, name, filter_key_pattern, options)


def delete_consumer(stream: str, consumer: str, base_url: str = None):
    with SequinClient(base_url) as client:
        client.delete_consumer(stream, consumer)
