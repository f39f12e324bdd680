"""
Exception types raised across the notification pipeline.
"""

from __future__ import annotations


class NotifierError(Exception):
    """Base class for all multi-notifier errors."""


class ConfigError(NotifierError):
    """Configuration is missing, malformed, or fails validation."""


class ProviderError(NotifierError):
    """A provider tag does not map to any known provider."""

    def __init__(self, provider_name: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"Unknown provider: {provider_name}")


class TransportError(NotifierError):
    """Delivery to a webhook endpoint failed.

    ``status`` is the HTTP status code, or ``None`` when the request never
    produced a response (connection refused, timeout, ...).
    """

    def __init__(self, status: int | None, message: str, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(message)
