"""
Discord provider — rich-embed notifications through a webhook.

One POST per notification, no retry: Discord webhooks either accept the
message or report a client error worth surfacing immediately.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from multinotifier.errors import ConfigError, TransportError
from multinotifier.notifications.config import DiscordConfig
from multinotifier.notifications.events import EventType, NotificationPayload
from multinotifier.notifications.provider import NotifierProvider, ValidationResult
from multinotifier.notifications.providers import as_mapping

logger = logging.getLogger(__name__)

WEBHOOK_PREFIX = "https://discord.com/api/webhooks/"
DEFAULT_USERNAME = "OpenCode Notifier"
PERMISSION_DESCRIPTION = (
    "The agent has paused execution and is waiting for you to authorize "
    "the operation shown above."
)

_EVENT_TITLE = {
    EventType.SESSION_IDLE: "✅ Session Idle",
    EventType.PERMISSION_ASKED: "⚠️ Permission Required",
}

_EVENT_COLOR = {
    EventType.SESSION_IDLE: 0x00FF00,      # green
    EventType.PERMISSION_ASKED: 0xFFA500,  # orange
}


class DiscordProvider(NotifierProvider):
    """Discord webhook notification provider."""

    name: str = "Discord"

    def __init__(self, config: DiscordConfig) -> None:
        result = self.validate_config(config)
        if not result.valid:
            raise ConfigError(", ".join(result.errors))
        self.config = config
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def validate_config(cls, raw_config: Any) -> ValidationResult:
        raw = as_mapping(raw_config)
        webhook_url = raw.get("webhookUrl")
        if not webhook_url:
            return ValidationResult.failed(["Missing webhookUrl"])
        if not isinstance(webhook_url, str) or not webhook_url.startswith(WEBHOOK_PREFIX):
            return ValidationResult.failed(
                ["webhookUrl must be a valid Discord webhook URL"]
            )
        return ValidationResult.ok()

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(timeout=30.0)

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, event_type: EventType, payload: NotificationPayload) -> None:
        body = self.build_body(EventType(event_type), payload)

        client = self._client or httpx.AsyncClient(timeout=30.0)
        try:
            resp = await client.post(self.config.webhook_url, json=body)
        except httpx.HTTPError as exc:
            raise TransportError(None, f"Discord webhook request failed: {exc!r}") from exc
        finally:
            if not self._client:
                await client.aclose()

        if not 200 <= resp.status_code < 300:
            raise TransportError(
                resp.status_code,
                f"Discord webhook failed: {resp.status_code} {resp.text}".rstrip(),
                resp.text,
            )
        logger.debug("Discord notification delivered for session %s", payload.session_id)

    def build_body(
        self, event_type: EventType, payload: NotificationPayload
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "username": self.config.username or DEFAULT_USERNAME,
            "embeds": [self._build_embed(event_type, payload)],
        }
        if self.config.avatar_url:
            body["avatar_url"] = self.config.avatar_url
        return body

    def _build_embed(
        self, event_type: EventType, payload: NotificationPayload
    ) -> dict[str, Any]:
        fields: list[dict[str, Any]] = [
            {
                "name": "\U0001f522 Peak Tokens",
                "value": f"{payload.peak_tokens:,} tokens",
                "inline": True,
            },
            {
                "name": "\U0001f4ca Peak Context",
                "value": f"{payload.peak_context_percentage:.2f}%",
                "inline": True,
            },
            {"name": "\U0001f916 Model", "value": payload.model_name, "inline": True},
        ]

        description = payload.last_text
        if payload.pending_command is not None:
            fields.insert(0, {
                "name": "\U0001f512 Pending Command",
                "value": f"```bash\n{payload.pending_command}\n```",
                "inline": False,
            })
            description = PERMISSION_DESCRIPTION

        return {
            "title": _EVENT_TITLE[event_type],
            "description": description,
            "color": _EVENT_COLOR[event_type],
            "fields": fields,
            "footer": {"text": payload.session_id},
            "timestamp": payload.timestamp,
        }
