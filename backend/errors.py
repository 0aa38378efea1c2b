# backend/errors.py
from typing import Optional

from config.settings import settings
from .model import ErrorEnvelope, FailureStatus
from .utils import truncate


class ProxyError(Exception):
    """
    Base for failures that have a specific, user-facing message.
    Adapters raise these; the provider base class turns them into an ErrorEnvelope.
    """

    def __init__(self, message: str, details: Optional[str] = None, status: FailureStatus = "error"):
        super().__init__(message)
        self.message = message
        self.details = details
        self.status = status

    def to_envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(error=self.message, details=self.details, status=self.status)


class ClientInputError(ProxyError):
    """Missing/blank prompt, malformed body. No backend call is made."""


class BackendTransportError(ProxyError):
    """Network failure, non-2xx status or unexpected content type."""

    def __init__(self, message: str, details: Optional[str] = None, status: FailureStatus = "error"):
        super().__init__(message, truncate(details, settings.DETAIL_LIMIT), status)


class BackendProtocolError(ProxyError):
    """Backend answered, but without the token / terminal record / image we need."""
