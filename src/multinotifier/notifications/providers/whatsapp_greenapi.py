"""
WhatsApp provider — plain-text notifications through Green-API.

Green-API instances are intermittently unreliable, so delivery goes
through the bounded retry state machine in
`multinotifier.notifications.delivery`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from multinotifier.errors import ConfigError
from multinotifier.notifications import delivery
from multinotifier.notifications.config import WhatsAppConfig
from multinotifier.notifications.events import EventType, NotificationPayload
from multinotifier.notifications.provider import NotifierProvider, ValidationResult
from multinotifier.notifications.providers import as_mapping

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("apiUrl", "instanceId", "apiToken", "chatId")
SEPARATOR = "─" * 20

_EVENT_TITLE = {
    EventType.SESSION_IDLE: "\U0001f7e2 *Session Idle*",
    EventType.PERMISSION_ASKED: "⚠️ *Permission Required*",
}


def _is_http_url(value: str) -> bool:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return url.scheme in ("http", "https") and bool(url.host)


class WhatsAppGreenApiProvider(NotifierProvider):
    """WhatsApp notification provider backed by a Green-API instance."""

    name: str = "WhatsApp"

    def __init__(self, config: WhatsAppConfig, *, base_delay: float = 1.0) -> None:
        result = self.validate_config(config)
        if not result.valid:
            raise ConfigError(", ".join(result.errors))
        self.config = config
        self.base_delay = base_delay
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def validate_config(cls, raw_config: Any) -> ValidationResult:
        raw = as_mapping(raw_config)
        errors: list[str] = []

        for field in REQUIRED_FIELDS:
            value = raw.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"Missing {field}")
            elif not isinstance(value, str):
                errors.append(f"{field} must be a string")

        api_url = raw.get("apiUrl")
        if isinstance(api_url, str) and api_url.strip() and not _is_http_url(api_url.strip()):
            errors.append("apiUrl must be a valid URL")

        timeout = raw.get("timeout")
        if timeout is not None and (
            isinstance(timeout, bool)
            or not isinstance(timeout, (int, float))
            or timeout <= 0
        ):
            errors.append("timeout must be a positive number")

        if errors:
            return ValidationResult.failed(errors)
        return ValidationResult.ok()

    @property
    def endpoint(self) -> str:
        cfg = self.config
        return (
            f"{cfg.api_url.rstrip('/')}/waInstance{cfg.instance_id}"
            f"/sendMessage/{cfg.api_token}"
        )

    @property
    def timeout_seconds(self) -> float:
        return self.config.timeout / 1000

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(timeout=self.timeout_seconds)

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, event_type: EventType, payload: NotificationPayload) -> None:
        body = {
            "chatId": self.config.chat_id,
            "message": self.format_message(EventType(event_type), payload),
        }

        client = self._client or httpx.AsyncClient(timeout=self.timeout_seconds)

        async def attempt() -> delivery.AttemptOutcome:
            try:
                resp = await client.post(self.endpoint, json=body)
            except httpx.HTTPError as exc:
                return delivery.classify_exception(exc, label="Green-API")
            return delivery.classify_response(resp, label="Green-API")

        try:
            attempts = await delivery.deliver_with_retry(
                attempt,
                base_delay=self.base_delay,
                label="WhatsApp Green-API",
            )
        finally:
            if not self._client:
                await client.aclose()

        logger.debug(
            "WhatsApp notification delivered for session %s after %d attempt(s)",
            payload.session_id,
            attempts,
        )

    def format_message(self, event_type: EventType, payload: NotificationPayload) -> str:
        lines = [
            _EVENT_TITLE[event_type],
            "",
            f"Event: {event_type.value}",
            f"Project: {payload.project_name}",
            f"Session ID: {payload.session_id}",
            f"Time: {payload.timestamp}",
            "",
            f"Peak Tokens: {payload.peak_tokens:,} tokens",
            f"Peak Context: {payload.peak_context_percentage:.2f}%",
            f"Model: {payload.model_name}",
            "",
            SEPARATOR,
            "Last Response:",
            payload.last_text,
        ]

        if payload.pending_command is not None:
            lines.extend(["", "Pending Command:", payload.pending_command])

        return "\n".join(lines)
