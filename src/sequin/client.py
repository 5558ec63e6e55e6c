import json
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Callable, List, Optional, Tuple, Type, TypeVar, Union
from urllib.parse import quote

import httpx
from loguru import logger as log
from pydantic import BaseModel, ValidationError

from sequin.config import DEFAULT_TIMEOUT, MAX_RETRIES, get_base_url
from sequin.errors import SequinError, SequinTransportError, SequinValidationError
from sequin.models import (Consumer, ConsumerOptions, DeleteResult, ReceivedMessage, ReceiveOptions,
                           SendResult, Stream, StreamOptions)

MAX_BATCH_SIZE = 1000

T = TypeVar('T')
OptionsT = TypeVar('OptionsT', bound=BaseModel)
MessageInput = Union[Tuple[str, Any], Sequence[Any], Mapping[str, Any]]


class SequinClient(object):
    """Synchronous client for the Sequin HTTP API.

    Every operation is one request/response. Failures surface as SequinError carrying
    the HTTP status and the server summary; connection failures are retried by the
    transport itself (MAX_RETRIES) and then raised as SequinTransportError.
    """

    def __init__(self, base_url: str = None, timeout: float = DEFAULT_TIMEOUT,
                 transport: httpx.BaseTransport = None):
        self.base_url = get_base_url(base_url)
        self.timeout = timeout
        self._connect(transport)

    def _connect(self, transport: Optional[httpx.BaseTransport]):
        self.client = httpx.Client(
            base_url=self.base_url, timeout=self.timeout,
            transport=transport or httpx.HTTPTransport(retries=MAX_RETRIES))
        log.debug(f'Sequin client ready, base_url={self.base_url}')

    def close(self):
        self.client.close()

    def __enter__(self) -> 'SequinClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # messages

    def send_message(self, stream: str, key: str, data: Any) -> SendResult:
        """Send one message to a stream

        Args:
            stream: stream id or name
            key: message key, e.g. "orders.1"
            data: string payload or any JSON-encodable value

        Returns: publish result, published == 1

        """
        return self.send_messages(stream, [(key, data)])

    def send_messages(self, stream: str, messages: Sequence[MessageInput]) -> SendResult:
        """Send a batch of messages (max 1000), all or nothing

        Args:
            stream: stream id or name
            messages: (key, data) pairs or {"key": ..., "data": ...} mappings

        Returns: publish result with the number of messages published

        """
        _require_str('stream', stream)
        body = {'messages': _message_bodies(messages)}
        response = self._request('POST', f'/api/streams/{_seg(stream)}/messages', body)
        result = self._decode(response, SendResult.model_validate)
        log.success(f'SEND messages OK, stream={stream}, published={result.published}')
        return result

    def receive_message(self, stream: str, consumer: str) -> Optional[ReceivedMessage]:
        """Receive a single message, None when the consumer has nothing to deliver"""
        received = self.receive_messages(stream, consumer, batch_size=1)
        return received[0] if received else None

    def receive_messages(self, stream: str, consumer: str, batch_size: int = None) -> List[ReceivedMessage]:
        """Receive a batch of messages from a consumer

        Args:
            stream: stream id or name
            consumer: consumer id or name
            batch_size: messages to fetch at most, 10 when omitted, 1000 at most

        Returns: received messages with their ack ids, empty when nothing is available

        """
        _require_str('stream', stream)
        _require_str('consumer', consumer)
        fields = {} if batch_size is None else {'batch_size': batch_size}
        options = _options(ReceiveOptions, fields)
        response = self._request(
            'POST', f'/api/streams/{_seg(stream)}/consumers/{_seg(consumer)}/receive', options.to_body())
        received = self._decode(response, _decode_received)
        log.info(f'RECEIVE messages OK, stream={stream}, consumer={consumer}, count={len(received)}')
        return received

    def ack_message(self, stream: str, consumer: str, ack_id: str):
        self.ack_messages(stream, consumer, [ack_id])

    def ack_messages(self, stream: str, consumer: str, ack_ids: Sequence[str]):
        """Acknowledge delivered messages, all or none

        Args:
            stream: stream id or name
            consumer: consumer id or name
            ack_ids: ack ids returned by receive

        """
        self._settle('ack', stream, consumer, ack_ids)

    def nack_message(self, stream: str, consumer: str, ack_id: str):
        self.nack_messages(stream, consumer, [ack_id])

    def nack_messages(self, stream: str, consumer: str, ack_ids: Sequence[str]):
        """Mark delivered messages for redelivery, all or none"""
        self._settle('nack', stream, consumer, ack_ids)

    def _settle(self, action: str, stream: str, consumer: str, ack_ids: Sequence[str]):
        _require_str('stream', stream)
        _require_str('consumer', consumer)
        if isinstance(ack_ids, str) or not isinstance(ack_ids, Iterable):
            raise SequinValidationError(f'ack_ids must be a list of strings, got {ack_ids!r}')
        ack_ids = list(ack_ids)
        if not ack_ids:
            raise SequinValidationError('ack_ids must not be empty')
        for ack_id in ack_ids:
            _require_str('ack_id', ack_id)
        self._request(
            'POST', f'/api/streams/{_seg(stream)}/consumers/{_seg(consumer)}/{action}', {'ack_ids': ack_ids})
        log.success(f'{action.upper()} messages OK, stream={stream}, consumer={consumer}, count={len(ack_ids)}')

    # streams

    def create_stream(self, name: str, options: Union[StreamOptions, Mapping[str, Any]] = None) -> Stream:
        """Create a stream

        Args:
            name: stream name
            options: StreamOptions or a mapping with the same fields

        Returns: the created stream

        """
        _require_str('name', name)
        body = {'name': name, **_options(StreamOptions, options).to_body()}
        response = self._request('POST', '/api/streams', body)
        stream = self._decode(response, Stream.decode)
        log.success(f'CREATE stream OK, id={stream.id}, name={stream.name}')
        return stream

    def delete_stream(self, stream: str) -> DeleteResult:
        """Delete a stream by id or name"""
        _require_str('stream', stream)
        response = self._request('DELETE', f'/api/streams/{_seg(stream)}')
        result = self._decode(response, DeleteResult.model_validate)
        if not result.deleted:
            raise SequinError(f'Sequin error: {response.status_code}: stream {stream} was not deleted',
                              status=response.status_code)
        log.success(f'DELETE stream OK, stream={stream}, id={result.id}')
        return result

    # consumers

    def create_consumer(self, stream: str, name: str, filter_key_pattern: str,
                        options: Union[ConsumerOptions, Mapping[str, Any]] = None) -> Consumer:
        """Create a consumer on a stream

        Args:
            stream: stream id or name
            name: consumer name
            filter_key_pattern: keys the consumer receives, e.g. "orders.>"
            options: ConsumerOptions or a mapping with the same fields

        Returns: the created consumer

        """
        _require_str('stream', stream)
        _require_str('name', name)
        _require_str('filter_key_pattern', filter_key_pattern)
        body = {'name': name, 'filter_key_pattern': filter_key_pattern,
                **_options(ConsumerOptions, options).to_body()}
        response = self._request('POST', f'/api/streams/{_seg(stream)}/consumers', body)
        consumer = self._decode(response, Consumer.decode)
        log.success(f'CREATE consumer OK, stream={stream}, id={consumer.id}, name={consumer.name}')
        return consumer

    def delete_consumer(self, stream: str, consumer: str):
        _require_str('stream', stream)
        _require_str('consumer', consumer)
        self._request('DELETE', f'/api/streams/{_seg(stream)}/consumers/{_seg(consumer)}')
        log.success(f'DELETE consumer OK, stream={stream}, consumer={consumer}')

    # transport

    def _request(self, method: str, path: str, body: dict = None) -> httpx.Response:
        log.debug(f'{method} {path} body={body}')
        try:
            response = self.client.request(method, path, json=body)
        except httpx.TransportError as e:
            log.error(f'Sequin {method} {path} failed, detail: {e!r}')
            raise SequinTransportError(f'Sequin transport error: {e!r}') from e
        if not response.is_success:
            error = SequinError.from_response(response.status_code, _json(response))
            log.error(f'Sequin {method} {path} failed, detail: {error}')
            raise error
        return response

    @staticmethod
    def _decode(response: httpx.Response, decoder: Callable[[Any], T]) -> T:
        body = _json(response)
        # send and receive wrap their payload in {"data": ...}
        if isinstance(body, dict) and 'data' in body:
            body = body['data']
        try:
            return decoder(body)
        except (ValidationError, KeyError, TypeError) as e:
            raise SequinError(f'Sequin error: {response.status_code}: unexpected response body',
                              status=response.status_code) from e


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _decode_received(data: Any) -> List[ReceivedMessage]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise TypeError(f'expected a list of messages, got {type(data).__name__}')
    return [ReceivedMessage.decode(item) for item in data]


def _seg(value: str) -> str:
    return quote(value, safe='')


def _require_str(name: str, value: Any):
    if not isinstance(value, str) or not value:
        raise SequinValidationError(f'{name} must be a non-empty string, got {value!r}')


def _options(model: Type[OptionsT], value: Any) -> OptionsT:
    if isinstance(value, model):
        return value
    if value is None:
        value = {}
    if not isinstance(value, Mapping):
        raise SequinValidationError(f'options must be {model.__name__} or a mapping, got {value!r}')
    try:
        return model.model_validate(dict(value))
    except ValidationError as e:
        raise SequinValidationError(f'Invalid {model.__name__}: {e}') from e


def _message_bodies(messages: Sequence[MessageInput]) -> List[dict]:
    if isinstance(messages, (str, bytes, Mapping)) or not isinstance(messages, Iterable):
        raise SequinValidationError(f'messages must be a list, got {messages!r}')
    messages = list(messages)
    if not messages:
        raise SequinValidationError('messages must not be empty')
    if len(messages) > MAX_BATCH_SIZE:
        raise SequinValidationError(f'at most {MAX_BATCH_SIZE} messages per batch, got {len(messages)}')
    bodies = []
    for message in messages:
        if isinstance(message, Mapping):
            if 'key' not in message or 'data' not in message:
                raise SequinValidationError(f'message must have key and data, got {message!r}')
            key, data = message['key'], message['data']
        elif isinstance(message, Sequence) and not isinstance(message, (str, bytes)) and len(message) == 2:
            key, data = message
        else:
            raise SequinValidationError(f'message must be a (key, data) pair or mapping, got {message!r}')
        _require_str('key', key)
        try:
            json.dumps(data)
        except (TypeError, ValueError) as e:
            raise SequinValidationError(f'data for key={key} is not JSON-encodable: {e}') from e
        bodies.append({'key': key, 'data': data})
    return bodies
