"""Exceptions raised by services and translated to HTTP responses in ``api.py``."""

from __future__ import annotations


class PortalError(Exception):
    """Base exception for agent portal errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PortalError):
    """Request input is malformed or out of range."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(PortalError):
    status_code = 404
    default_message = "Not found"


class ServiceNotConfigured(PortalError):
    """A required credential or setting is absent."""

    status_code = 503
    default_message = "Service unavailable"


class UpstreamError(PortalError):
    """An external API returned a non-2xx response or could not be reached."""

    status_code = 502
    default_message = "Upstream service unavailable"


__all__ = [
    "PortalError",
    "ValidationError",
    "NotFoundError",
    "ServiceNotConfigured",
    "UpstreamError",
]
