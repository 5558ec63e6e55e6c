from datetime import datetime
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from sequin.utils import parse_datetime

# unparseable timestamps decode to None instead of failing the record
Timestamp = Annotated[Optional[datetime], BeforeValidator(parse_datetime)]


class StreamStats(BaseModel):
    message_count: Optional[int] = None
    consumer_count: Optional[int] = None
    storage_size: Optional[int] = None


class Stream(BaseModel):
    id: str
    name: str
    account_id: Optional[str] = None
    stats: Optional[StreamStats] = None
    inserted_at: Timestamp = None
    updated_at: Timestamp = None

    @classmethod
    def decode(cls, data: Dict[str, Any]) -> 'Stream':
        return cls.model_validate(data)


class Consumer(BaseModel):
    id: str
    name: str
    stream_id: str
    filter_key_pattern: Optional[str] = None
    kind: Optional[str] = None
    ack_wait_ms: Optional[int] = None
    max_ack_pending: Optional[int] = None
    max_deliver: Optional[int] = None
    max_waiting: Optional[int] = None
    http_endpoint_id: Optional[str] = None
    status: Optional[str] = None
    inserted_at: Timestamp = None
    updated_at: Timestamp = None

    @classmethod
    def decode(cls, data: Dict[str, Any]) -> 'Consumer':
        return cls.model_validate(data)


class Message(BaseModel):
    key: str
    stream_id: str
    data: Any = None
    seq: Optional[int] = None
    inserted_at: Timestamp = None
    updated_at: Timestamp = None

    @classmethod
    def decode(cls, data: Dict[str, Any]) -> 'Message':
        return cls.model_validate(data)


class ReceivedMessage(BaseModel):
    """A delivered message and the ack_id used to ack/nack this delivery"""
    message: Message
    ack_id: str

    @classmethod
    def decode(cls, data: Dict[str, Any]) -> 'ReceivedMessage':
        return cls(message=Message.decode(data['message']), ack_id=data['ack_id'])


class SendResult(BaseModel):
    published: int


class DeleteResult(BaseModel):
    deleted: bool
    id: Optional[str] = None


class _Options(BaseModel):
    # wrong-typed values are rejected, not coerced
    model_config = ConfigDict(extra='forbid', strict=True)

    def to_body(self) -> Dict[str, Any]:
        """Only the fields the caller actually set go on the wire"""
        return self.model_dump(exclude_none=True)


class ReceiveOptions(_Options):
    batch_size: int = Field(default=10, ge=1, le=1000)


class StreamOptions(_Options):
    one_message_per_key: Optional[bool] = None
    process_unmodified: Optional[bool] = None
    max_storage_gb: Optional[int] = Field(default=None, ge=1)
    retain_up_to: Optional[int] = Field(default=None, ge=0)
    retain_at_least: Optional[int] = Field(default=None, ge=0)


class ConsumerOptions(_Options):
    ack_wait_ms: Optional[int] = Field(default=None, ge=0)
    max_ack_pending: Optional[int] = Field(default=None, ge=1)
    max_deliver: Optional[int] = Field(default=None, ge=1)
