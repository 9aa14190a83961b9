"""Exception taxonomy shared by the store, the inference client and the coordinator."""

from __future__ import annotations

from typing import Optional


class LexiconError(Exception):
    """Base class for every error raised by magic-lexicon components."""

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(LexiconError):
    """Raised when credentials or settings are missing before any I/O happens."""

    kind = "configuration"


class TransportError(LexiconError):
    """Raised for network failures and non-2xx HTTP responses."""

    kind = "transport"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InferenceTimeoutError(LexiconError, TimeoutError):
    """Raised when a request exceeds its time budget."""

    kind = "timeout"

    def __init__(self, message: str, *, timeout_seconds: Optional[float] = None) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class MalformedResponseError(LexiconError):
    """Raised when a model response does not contain parseable JSON.

    ``excerpt`` holds a whitespace-collapsed slice of the offending text,
    never longer than 400 characters.
    """

    kind = "malformed_response"

    def __init__(self, message: str, *, excerpt: str = "") -> None:
        super().__init__(message)
        self.excerpt = excerpt


class DeliveryError(LexiconError):
    """Raised when the caller's chunk callback fails while an answer streams."""

    kind = "callback"


class NotFoundError(LexiconError, LookupError):
    """Raised when a store operation references an absent entry."""

    kind = "not_found"


class ValidationError(LexiconError, ValueError):
    """Raised for illegal collection names and invalid store input."""

    kind = "validation"


__all__ = [
    "ConfigurationError",
    "DeliveryError",
    "InferenceTimeoutError",
    "LexiconError",
    "MalformedResponseError",
    "NotFoundError",
    "TransportError",
    "ValidationError",
]
