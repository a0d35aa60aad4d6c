"""Typed errors for the microprediction client."""

from __future__ import annotations

from typing import Any, Optional


class MicropredictionError(Exception):
    """Base class for every failure raised by this library."""


class TransportError(MicropredictionError):
    """Raised when a request never produced an HTTP response.

    Attributes:
        url: The URL that was requested.
        reason: Human-readable error description.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"request to {url} failed: {reason}")


class RemoteError(MicropredictionError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status: int, url: str, body: str = "") -> None:
        self.status = status
        self.url = url
        self.body = body
        detail = f": {body[:200]}" if body else ""
        super().__init__(f"HTTP {status} from {url}{detail}")


class DecodeError(MicropredictionError):
    """Response body does not match the shape an endpoint promises."""


class MalformedPayload(DecodeError):
    """Wrong container type, wrong arity, or a body that is not JSON."""


class NonNumericField(DecodeError):
    """A timestamp or value could not be interpreted as a number."""

    def __init__(self, field: str, value: Any, message: Optional[str] = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message or f"{field} is not numeric: {value!r}")


class ValidationError(MicropredictionError, ValueError):
    """Caller-supplied arguments violate a precondition."""
