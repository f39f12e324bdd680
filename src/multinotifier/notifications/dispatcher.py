"""
Dispatcher — fans one payload out to every active provider.

All sends are started before any is awaited; each provider's outcome is
captured and logged on its own so a failing channel never blocks or
breaks delivery to the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from multinotifier.notifications.events import EventType, NotificationPayload
from multinotifier.notifications.provider import NotifierProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    provider: str
    success: bool
    error: Optional[BaseException] = None


async def dispatch(
    providers: Sequence[NotifierProvider],
    event_type: EventType,
    payload: NotificationPayload,
) -> list[DispatchOutcome]:
    """Deliver best-effort to all providers and report per-provider outcome."""
    if not providers:
        return []

    results = await asyncio.gather(
        *(provider.send(event_type, payload) for provider in providers),
        return_exceptions=True,
    )

    outcomes: list[DispatchOutcome] = []
    for provider, result in zip(providers, results):
        if isinstance(result, BaseException):
            logger.error("%s: FAILED - %s", provider.name, result)
            outcomes.append(DispatchOutcome(provider.name, False, result))
        else:
            logger.info("%s: SUCCESS", provider.name)
            outcomes.append(DispatchOutcome(provider.name, True))

    return outcomes
