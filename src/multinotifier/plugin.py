"""
NotifierPlugin — host event handler that drives the notification pipeline.

Flow per event: extract the session id → (idle only) let token counts
settle → fetch session and messages concurrently → build the payload →
dispatch to every active provider. The handler never raises into the
host; every failure ends up in the log instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from multinotifier.core import CONFIG_SECTION, ConfigResolver, load_config_file
from multinotifier.errors import ConfigError
from multinotifier.hostlog import HostLogHandler
from multinotifier.notifications.config import MultiProviderConfig
from multinotifier.notifications.dispatcher import DispatchOutcome, dispatch
from multinotifier.notifications.events import EventType
from multinotifier.notifications.payload import build_payload
from multinotifier.notifications.provider import NotifierProvider
from multinotifier.notifications.registry import get_providers

logger = logging.getLogger(__name__)

IDLE_DELAY_SECONDS = 1.5
_SESSION_ID_KEYS = ("sessionID", "id", "sessionId")


def _unwrap(response: Any) -> Any:
    """Host API responses may wrap their result in a `data` envelope."""
    data = getattr(response, "data", None)
    if data is not None:
        return data
    if isinstance(response, Mapping) and "data" in response:
        return response["data"]
    return response


def _session_id(event: Mapping[str, Any]) -> Optional[str]:
    properties = event.get("properties") or {}
    for key in _SESSION_ID_KEYS:
        value = properties.get(key)
        if value:
            return str(value)
    return None


def _attach_host_log(client: Any) -> HostLogHandler:
    package_logger = logging.getLogger("multinotifier")
    for handler in package_logger.handlers:
        if isinstance(handler, HostLogHandler) and handler.client is client:
            return handler
    handler = HostLogHandler(client)
    package_logger.addHandler(handler)
    if package_logger.level == logging.NOTSET or package_logger.level > logging.INFO:
        package_logger.setLevel(logging.INFO)
    return handler


class NotifierPlugin:
    """Notifies chat channels when a session goes idle or asks for permission."""

    def __init__(
        self,
        client: Any,
        project: Mapping[str, Any],
        config: MultiProviderConfig,
        *,
        providers: Optional[list[NotifierProvider]] = None,
        idle_delay: float = IDLE_DELAY_SECONDS,
    ) -> None:
        self.client = client
        self.project = project
        self.config = config
        self.providers = providers if providers is not None else get_providers(config)
        self.idle_delay = idle_delay
        self.host_log: Optional[HostLogHandler] = None

    @classmethod
    def activate(
        cls,
        client: Any,
        project: Mapping[str, Any],
        *,
        config_path: Optional[Path] = None,
        attach_host_log: bool = True,
        idle_delay: float = IDLE_DELAY_SECONDS,
    ) -> NotifierPlugin:
        """
        Resolve configuration and build providers once.

        Project config (`project["config"]["notifier"]`) wins over the
        config file. A ConfigError leaves the plugin loaded as a no-op.
        """
        host_log = _attach_host_log(client) if attach_host_log else None

        project_config = project.get("config") or {}
        try:
            if isinstance(project_config, Mapping) and CONFIG_SECTION in project_config:
                config = ConfigResolver().load(project_config)
            else:
                config = load_config_file(config_path)
        except ConfigError as exc:
            logger.error("Notifier disabled: %s", exc)
            config = MultiProviderConfig(enabled=False)

        plugin = cls(client, project, config, idle_delay=idle_delay)
        plugin.host_log = host_log
        logger.info(
            "Notifier activated with %d provider(s): %s",
            len(plugin.providers),
            ", ".join(p.name for p in plugin.providers) or "none",
        )
        return plugin

    @property
    def active(self) -> bool:
        return self.config.enabled and bool(self.providers)

    async def start(self) -> None:
        """Open a pooled HTTP client per provider for the plugin's lifetime."""
        for provider in self.providers:
            await provider.connect()

    async def close(self) -> None:
        """Release provider clients and flush host log calls still in flight."""
        for provider in self.providers:
            try:
                await provider.disconnect()
            except Exception:
                logger.exception("Failed to disconnect %s", provider.name)
        if self.host_log is not None:
            await self.host_log.drain()

    async def on_event(self, event: Mapping[str, Any]) -> list[DispatchOutcome]:
        """Handle a host event. Never raises."""
        try:
            event_type = EventType(event.get("type"))
        except ValueError:
            return []

        try:
            return await self._handle(event_type, event)
        except Exception:
            logger.exception("Failed to handle %s event", event_type.value)
            return []

    async def _handle(
        self, event_type: EventType, event: Mapping[str, Any]
    ) -> list[DispatchOutcome]:
        if not self.active:
            logger.debug("No active providers, skipping %s", event_type.value)
            return []

        session_id = _session_id(event)
        if not session_id:
            logger.warning("Event %s carries no session id, skipping", event_type.value)
            return []

        # Token counts on the last turn land shortly after the idle event
        if event_type == EventType.SESSION_IDLE and self.idle_delay > 0:
            await asyncio.sleep(self.idle_delay)

        session_resp, messages_resp = await asyncio.gather(
            self.client.session.get(session_id),
            self.client.session.messages(session_id),
            return_exceptions=True,
        )
        for resp in (session_resp, messages_resp):
            if isinstance(resp, BaseException):
                logger.error("Failed to fetch session %s: %s", session_id, resp)
                return []

        session = _unwrap(session_resp) or {}
        messages = _unwrap(messages_resp) or []
        if "id" not in session:
            session = {**session, "id": session_id}

        payload = build_payload(event_type, session, messages, self.project)
        return await dispatch(self.providers, event_type, payload)
