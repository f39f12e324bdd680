"""
Configuration models for the notification providers.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DISCORD = "discord"
WHATSAPP_GREENAPI = "whatsapp-greenapi"

ProviderTag = Literal["discord", "whatsapp-greenapi"]

DEFAULT_TIMEOUT_MS = 10000


class _ProviderConfigBase(BaseModel):
    # Raw config files use camelCase keys (webhookUrl, apiToken, ...)
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    enabled: bool


class DiscordConfig(_ProviderConfigBase):
    """Configuration for the Discord webhook provider."""

    provider: Literal["discord"] = DISCORD
    webhook_url: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None


class WhatsAppConfig(_ProviderConfigBase):
    """Configuration for the WhatsApp Green-API provider."""

    provider: Literal["whatsapp-greenapi"] = WHATSAPP_GREENAPI
    api_url: str
    instance_id: str
    api_token: str
    chat_id: str
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)  # milliseconds


ProviderConfig = Annotated[
    Union[DiscordConfig, WhatsAppConfig],
    Field(discriminator="provider"),
]


class MultiProviderConfig(BaseModel):
    """Top-level notifier configuration, built once at activation."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    providers: Optional[dict[str, ProviderConfig]] = None

    @property
    def active(self) -> bool:
        """True when at least one provider may receive notifications."""
        return self.enabled and bool(self.providers)
