"""
Notification events — the data flowing through the notification pipeline.

Defines the supported event types and the channel-agnostic
NotificationPayload that providers consume.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

MAX_TEXT_LENGTH = 1500


class EventType(str, Enum):
    SESSION_IDLE = "session.idle"
    PERMISSION_ASKED = "permission.asked"


class NotificationPayload(BaseModel):
    """A single, fully-derived notification event dispatched to providers."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    event_type: EventType
    session_id: str
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    project_name: str = ""
    peak_tokens: int = Field(default=0, ge=0)
    peak_context_percentage: float = Field(default=0.0, ge=0)
    model_name: str = "Unknown"
    last_text: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    pending_command: Optional[str] = None

    @model_validator(mode="after")
    def _pending_command_only_for_permission(self) -> NotificationPayload:
        if (
            self.pending_command is not None
            and self.event_type != EventType.PERMISSION_ASKED
        ):
            raise ValueError("pending_command is only allowed for permission.asked")
        return self
