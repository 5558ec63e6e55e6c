"""Test fixtures: an in-memory Sequin server behind httpx.MockTransport."""

import json
import re
import uuid

import httpx
import pytest

from sequin import SequinClient

BASE_URL = 'http://sequin.test'
NOW = '2026-10-18T12:00:00Z'


def key_matches(pattern: str, key: str) -> bool:
    """Dotted key filter: * matches one token, > matches one or more trailing tokens"""
    pattern_tokens = pattern.split('.')
    key_tokens = key.split('.')
    for i, token in enumerate(pattern_tokens):
        if token == '>':
            return len(key_tokens) > i
        if i >= len(key_tokens):
            return False
        if token != '*' and token != key_tokens[i]:
            return False
    return len(pattern_tokens) == len(key_tokens)


class FakeSequin(object):
    """Just enough of the Sequin HTTP API to exercise the client"""

    def __init__(self):
        self.streams = {}
        self.consumers = {}
        self.messages = {}
        self.pending = {}
        self.acked = {}
        self.requests = []
        self.routes = [
            ('POST', r'/api/streams', self.create_stream),
            ('DELETE', r'/api/streams/(?P<stream>[^/]+)', self.delete_stream),
            ('POST', r'/api/streams/(?P<stream>[^/]+)/messages', self.send),
            ('POST', r'/api/streams/(?P<stream>[^/]+)/consumers', self.create_consumer),
            ('DELETE', r'/api/streams/(?P<stream>[^/]+)/consumers/(?P<consumer>[^/]+)', self.delete_consumer),
            ('POST', r'/api/streams/(?P<stream>[^/]+)/consumers/(?P<consumer>[^/]+)/receive', self.receive),
            ('POST', r'/api/streams/(?P<stream>[^/]+)/consumers/(?P<consumer>[^/]+)/ack', self.ack),
            ('POST', r'/api/streams/(?P<stream>[^/]+)/consumers/(?P<consumer>[^/]+)/nack', self.nack),
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        for method, pattern, handler in self.routes:
            match = re.fullmatch(pattern, request.url.path)
            if method == request.method and match:
                return handler(body, **match.groupdict())
        return self.error(404, 'Not found')

    @staticmethod
    def error(status: int, summary: str) -> httpx.Response:
        return httpx.Response(status, json={'summary': summary})

    def find_stream(self, ref: str):
        for stream in self.streams.values():
            if ref in (stream['id'], stream['name']):
                return stream
        return None

    def find_consumer(self, stream: dict, ref: str):
        for consumer in self.consumers.values():
            if consumer['stream_id'] == stream['id'] and ref in (consumer['id'], consumer['name']):
                return consumer
        return None

    def create_stream(self, body):
        if self.find_stream(body['name']):
            return self.error(422, 'Validation failed: name has already been taken')
        stream = {
            'id': str(uuid.uuid4()), 'name': body['name'], 'account_id': 'acct-1',
            'stats': {'message_count': 0, 'consumer_count': 0, 'storage_size': 0},
            'inserted_at': NOW, 'updated_at': NOW,
        }
        self.streams[stream['id']] = stream
        self.messages[stream['id']] = []
        return httpx.Response(200, json=stream)

    def delete_stream(self, body, stream):
        found = self.find_stream(stream)
        if not found:
            return self.error(404, 'Not found: No `stream` found matching the provided ID or name')
        del self.streams[found['id']]
        del self.messages[found['id']]
        return httpx.Response(200, json={'deleted': True, 'id': found['id']})

    def send(self, body, stream):
        found = self.find_stream(stream)
        if not found:
            return self.error(404, 'Not found: No `stream` found matching the provided ID or name')
        log = self.messages[found['id']]
        for message in body['messages']:
            log.append({
                'key': message['key'], 'stream_id': found['id'], 'data': message['data'],
                'seq': len(log) + 1, 'inserted_at': NOW, 'updated_at': NOW,
            })
        found['stats']['message_count'] = len(log)
        return httpx.Response(200, json={'data': {'published': len(body['messages'])}})

    def create_consumer(self, body, stream):
        found = self.find_stream(stream)
        if not found:
            return self.error(404, 'Not found: No `stream` found matching the provided ID or name')
        if self.find_consumer(found, body['name']):
            return self.error(422, 'Validation failed: name has already been taken')
        consumer = {
            'id': str(uuid.uuid4()), 'name': body['name'], 'stream_id': found['id'],
            'filter_key_pattern': body['filter_key_pattern'], 'kind': 'pull',
            'ack_wait_ms': body.get('ack_wait_ms', 30000), 'max_ack_pending': body.get('max_ack_pending', 10000),
            'max_deliver': body.get('max_deliver'), 'max_waiting': 20, 'http_endpoint_id': None,
            'status': 'active', 'inserted_at': NOW, 'updated_at': NOW,
        }
        self.consumers[consumer['id']] = consumer
        self.acked[consumer['id']] = set()
        return httpx.Response(200, json=consumer)

    def delete_consumer(self, body, stream, consumer):
        found = self.find_stream(stream)
        target = found and self.find_consumer(found, consumer)
        if not target:
            return self.error(404, 'Not found: No `consumer` found matching the provided ID or name')
        del self.consumers[target['id']]
        return httpx.Response(200, json={'deleted': True, 'id': target['id']})

    def receive(self, body, stream, consumer):
        found = self.find_stream(stream)
        target = found and self.find_consumer(found, consumer)
        if not target:
            return self.error(404, 'Not found: No `consumer` found matching the provided ID or name')
        in_flight = {seq for consumer_id, seq in self.pending.values() if consumer_id == target['id']}
        batch = []
        for message in self.messages[found['id']]:
            if len(batch) >= body['batch_size']:
                break
            if message['seq'] in in_flight or message['seq'] in self.acked[target['id']]:
                continue
            if not key_matches(target['filter_key_pattern'], message['key']):
                continue
            ack_id = str(uuid.uuid4())
            self.pending[ack_id] = (target['id'], message['seq'])
            batch.append({'message': message, 'ack_id': ack_id})
        return httpx.Response(200, json={'data': batch})

    def _settle(self, body, stream, consumer, acking: bool):
        found = self.find_stream(stream)
        target = found and self.find_consumer(found, consumer)
        if not target:
            return self.error(404, 'Not found: No `consumer` found matching the provided ID or name')
        ack_ids = body['ack_ids']
        invalid = [a for a in ack_ids if self.pending.get(a, (None,))[0] != target['id']]
        if invalid:
            return self.error(422, f'Invalid ack_ids: {", ".join(invalid)}')
        for ack_id in ack_ids:
            _, seq = self.pending.pop(ack_id)
            if acking:
                self.acked[target['id']].add(seq)
        return httpx.Response(204)

    def ack(self, body, stream, consumer):
        return self._settle(body, stream, consumer, acking=True)

    def nack(self, body, stream, consumer):
        return self._settle(body, stream, consumer, acking=False)


@pytest.fixture
def server() -> FakeSequin:
    return FakeSequin()


@pytest.fixture
def client(server: FakeSequin):
    with SequinClient(BASE_URL, transport=httpx.MockTransport(server.handle)) as c:
        yield c


@pytest.fixture
def stub_client():
    """Client factory answering every request with a fixed handler"""
    clients = []

    def factory(handler) -> SequinClient:
        c = SequinClient(BASE_URL, transport=httpx.MockTransport(handler))
        clients.append(c)
        return c

    yield factory
    for c in clients:
        c.close()
