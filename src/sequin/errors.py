from typing import Optional


class SequinError(Exception):
    """Uniform error for every failed Sequin call.

    Attributes:
        status: HTTP status code of the failed response, None when no response was received
        summary: human-readable summary provided by the server, if any
    """

    def __init__(self, message: str, status: Optional[int] = None, summary: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.summary = summary

    @classmethod
    def from_response(cls, status: int, body) -> 'SequinError':
        summary = body.get('summary') if isinstance(body, dict) else None
        if summary:
            return cls(f'Sequin error: {status}: {summary}', status=status, summary=summary)
        return cls(f'Sequin error: {status}', status=status)


class SequinTransportError(SequinError):
    """The request never produced an HTTP response (connect/read failure, timeout)"""


class SequinValidationError(SequinError, ValueError):
    """Arguments were rejected locally, before any request was sent"""
