"""
NotifierProvider — abstract base class for all notification providers.

Each provider implementation (Discord, WhatsApp Green-API) inherits from
this ABC, implements `send()`, and checks raw configuration with
`validate_config()` before it is ever constructed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from multinotifier.notifications.events import EventType, NotificationPayload


class ValidationResult(BaseModel):
    """Outcome of checking a raw provider configuration."""

    valid: bool
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def failed(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=False, errors=errors)


class NotifierProvider(ABC):
    """Base class for notification providers."""

    name: str = "unnamed"

    @abstractmethod
    async def send(self, event_type: EventType, payload: NotificationPayload) -> None:
        """Deliver a payload, raising TransportError on failure."""
        ...

    @classmethod
    def validate_config(cls, raw_config: Any) -> ValidationResult:
        """Check a raw (camelCase) config mapping. Default: always valid."""
        return ValidationResult.ok()

    async def connect(self) -> None:
        """Open a pooled HTTP client. No-op by default."""

    async def disconnect(self) -> None:
        """Close the pooled HTTP client. No-op by default."""
