# core/errors.py
from typing import Optional


class UpstreamError(RuntimeError):
    """Base class for failures talking to the sportsbook."""


class UpstreamHttpError(UpstreamError):
    """Raised when the upstream answers with a non-2xx status."""

    def __init__(self, status: int, status_text: str = "", url: Optional[str] = None):
        self.status = status
        self.status_text = status_text
        self.url = url
        super().__init__(f"HTTP {status}: {status_text}".rstrip(": "))


class UpstreamParseError(UpstreamError):
    """Raised when a response body cannot be decoded or turned into match records."""


class ValidationFailed(ValueError):
    """A single parsed record was rejected. Never fatal for a batch."""

    def __init__(self, reason: str, record_id: Optional[str] = None):
        self.reason = reason
        self.record_id = record_id
        super().__init__(f"{record_id or '<record>'}: {reason}")


class NoDataAvailable(RuntimeError):
    """A fetch completed but produced no usable records."""
