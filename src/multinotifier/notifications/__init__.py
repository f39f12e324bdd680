"""
Notification pipeline for multi-notifier.

Builds a channel-agnostic payload from session data and fans it out to
every active provider (Discord, WhatsApp Green-API).
"""

from multinotifier.notifications.config import (
    DiscordConfig,
    MultiProviderConfig,
    WhatsAppConfig,
)
from multinotifier.notifications.dispatcher import DispatchOutcome, dispatch
from multinotifier.notifications.events import EventType, NotificationPayload
from multinotifier.notifications.payload import (
    build_permission_asked_payload,
    build_session_idle_payload,
)
from multinotifier.notifications.provider import NotifierProvider, ValidationResult
from multinotifier.notifications.registry import get_provider, get_providers

__all__ = [
    "DiscordConfig",
    "DispatchOutcome",
    "EventType",
    "MultiProviderConfig",
    "NotificationPayload",
    "NotifierProvider",
    "ValidationResult",
    "WhatsAppConfig",
    "build_permission_asked_payload",
    "build_session_idle_payload",
    "dispatch",
    "get_provider",
    "get_providers",
]
