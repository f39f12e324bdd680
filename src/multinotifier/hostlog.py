"""
HostLogHandler — forwards log records to the host application's log.

The host exposes a single logging collaborator, `client.app.log(body=...)`,
which takes a `{service, level, message}` body. It may be sync or async;
coroutines are scheduled on the running event loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

SERVICE_NAME = "multi-notifier"

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def host_level(levelno: int) -> str:
    for threshold in (logging.CRITICAL, logging.ERROR, logging.WARNING, logging.INFO):
        if levelno >= threshold:
            return _LEVEL_NAMES[threshold]
    return "debug"


class HostLogHandler(logging.Handler):
    """Logging handler that emits records through `client.app.log`."""

    def __init__(self, client: Any, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.client = client
        self._pending: set[asyncio.Task[Any]] = set()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            body = {
                "service": SERVICE_NAME,
                "level": host_level(record.levelno),
                "message": self.format(record),
            }
            result = self.client.app.log(body=body)
            if inspect.isawaitable(result):
                self._schedule(result)
        except Exception:
            self.handleError(record)

    def _schedule(self, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(_await(awaitable))
            return
        task = loop.create_task(_await(awaitable))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for host log calls that are still in flight."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


async def _await(awaitable: Any) -> Any:
    return await awaitable
