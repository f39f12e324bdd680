"""
Notification provider implementations.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel


def as_mapping(raw_config: Any) -> Mapping[str, Any]:
    """Normalize a raw config or typed config model into a camelCase mapping."""
    if isinstance(raw_config, BaseModel):
        return raw_config.model_dump(by_alias=True)
    if isinstance(raw_config, Mapping):
        return raw_config
    return {}
