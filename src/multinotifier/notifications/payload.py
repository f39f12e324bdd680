"""
Payload builders — derive a NotificationPayload from raw session data.

The host returns sessions and messages as loosely-shaped JSON; role,
tokens and model id may sit at the top level of a message or under its
`info` key, so every lookup here tolerates missing keys.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence

from multinotifier.notifications.events import (
    MAX_TEXT_LENGTH,
    EventType,
    NotificationPayload,
)

DEFAULT_TEXT = "Response completed."
UNKNOWN_MODEL = "Unknown"
PENDING_COMMAND_PLACEHOLDER = "Check terminal for details"

# Progress chatter that is never worth forwarding as "the last response"
_BOILERPLATE_MARKERS = ("Please create a temp file", "git commit")
_PENDING_STATUSES = ("pending", "running")


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def _message_field(message: Mapping[str, Any], key: str) -> Any:
    value = _dig(message, "info", key)
    return value if value is not None else message.get(key)


def _is_assistant(message: Mapping[str, Any]) -> bool:
    return _message_field(message, "role") == "assistant"


def _turn_total(tokens: Any) -> int:
    if not isinstance(tokens, Mapping):
        return 0
    return (
        (tokens.get("input") or 0)
        + (tokens.get("output") or 0)
        + (_dig(tokens, "cache", "read") or 0)
    )


def _message_text(message: Mapping[str, Any]) -> str:
    parts = message.get("parts") or []
    texts = [
        p["text"]
        for p in parts
        if isinstance(p, Mapping) and p.get("type") == "text" and isinstance(p.get("text"), str)
    ]
    return "\n".join(texts)


def _session_id(session: Mapping[str, Any]) -> str:
    return (
        session.get("id")
        or _dig(session, "properties", "sessionID")
        or _dig(session, "properties", "id")
        or ""
    )


def _context_percentage(peak_tokens: int, context_limit: Any) -> float:
    if peak_tokens > 0 and isinstance(context_limit, (int, float)) and context_limit > 0:
        return 100 * peak_tokens / context_limit
    return 0.0


def build_session_idle_payload(
    session: Mapping[str, Any],
    messages: Sequence[Mapping[str, Any]],
    project: Mapping[str, Any],
) -> NotificationPayload:
    """Build the payload for a session.idle event."""
    peak_tokens = 0
    last_text = DEFAULT_TEXT

    for message in messages:
        if not _is_assistant(message):
            continue
        peak_tokens = max(peak_tokens, _turn_total(_message_field(message, "tokens")))

        text = _message_text(message)
        if text.strip() and not any(marker in text for marker in _BOILERPLATE_MARKERS):
            last_text = text[:MAX_TEXT_LENGTH]

    model_name = (
        _dig(session, "model", "name")
        or (_message_field(messages[-1], "modelID") if messages else None)
        or UNKNOWN_MODEL
    )

    return NotificationPayload(
        event_type=EventType.SESSION_IDLE,
        session_id=_session_id(session),
        project_name=project.get("name") or "",
        peak_tokens=peak_tokens,
        peak_context_percentage=_context_percentage(
            peak_tokens, _dig(session, "model", "limit", "context")
        ),
        model_name=model_name,
        last_text=last_text,
    )


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def find_pending_command(messages: Sequence[Mapping[str, Any]]) -> Optional[str]:
    """Return the command of the first pending/running tool call, if any."""
    for message in messages:
        if not _is_assistant(message):
            continue
        for part in message.get("parts") or []:
            if not isinstance(part, Mapping) or part.get("type") != "tool":
                continue
            if _dig(part, "state", "status") not in _PENDING_STATUSES:
                continue
            tool_input = _dig(part, "state", "input") or {}
            if not isinstance(tool_input, Mapping):
                return _as_text(tool_input)
            return _as_text(
                tool_input.get("command")
                or tool_input.get("filePath")
                or tool_input
            )
    return None


def build_permission_asked_payload(
    session: Mapping[str, Any],
    messages: Sequence[Mapping[str, Any]],
    project: Mapping[str, Any],
) -> NotificationPayload:
    """Build the payload for a permission.asked event."""
    base = build_session_idle_payload(session, messages, project)
    fields = base.model_dump()
    fields.update(
        event_type=EventType.PERMISSION_ASKED,
        pending_command=find_pending_command(messages) or PENDING_COMMAND_PLACEHOLDER,
    )
    return NotificationPayload(**fields)


def build_payload(
    event_type: EventType,
    session: Mapping[str, Any],
    messages: Sequence[Mapping[str, Any]],
    project: Mapping[str, Any],
) -> NotificationPayload:
    if event_type == EventType.PERMISSION_ASKED:
        return build_permission_asked_payload(session, messages, project)
    return build_session_idle_payload(session, messages, project)
