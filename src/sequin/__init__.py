from sequin.api import (ack_message, ack_messages, create_consumer, create_stream, delete_consumer, delete_stream,
                        nack_message, nack_messages, receive_message, receive_messages, send_message, send_messages)
from sequin.client import SequinClient
from sequin.config import DEFAULT_BASE_URL, get_base_url
from sequin.errors import SequinError, SequinTransportError, SequinValidationError
from sequin.models import (Consumer, ConsumerOptions, DeleteResult, Message, ReceivedMessage, ReceiveOptions,
                           SendResult, Stream, StreamOptions, StreamStats)

__version__ = '0.1.0'

__all__ = [
    'SequinClient',
    'SequinError', 'SequinTransportError', 'SequinValidationError',
    'Stream', 'StreamStats', 'Consumer', 'Message', 'ReceivedMessage', 'SendResult', 'DeleteResult',
    'ReceiveOptions', 'StreamOptions', 'ConsumerOptions',
    'DEFAULT_BASE_URL', 'get_base_url',
    'send_message', 'send_messages', 'receive_message', 'receive_messages',
    'ack_message', 'ack_messages', 'nack_message', 'nack_messages',
    'create_stream', 'delete_stream', 'create_consumer', 'delete_consumer',
]
