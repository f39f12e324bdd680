"""
Provider factory — turns validated provider configs into live providers.
"""

from __future__ import annotations

import logging
from typing import Never

from multinotifier.errors import ProviderError
from multinotifier.notifications.config import (
    DiscordConfig,
    MultiProviderConfig,
    ProviderTag,
    WhatsAppConfig,
)
from multinotifier.notifications.provider import NotifierProvider
from multinotifier.notifications.providers.discord import DiscordProvider
from multinotifier.notifications.providers.whatsapp_greenapi import (
    WhatsAppGreenApiProvider,
)

logger = logging.getLogger(__name__)


def _unknown_provider(tag: Never) -> Never:
    # Typed like assert_never: a missing case is a type error at the call site
    raise ProviderError(str(tag))


def provider_class(tag: ProviderTag) -> type[NotifierProvider]:
    """The provider class registered under a config tag."""
    match tag:
        case "discord":
            return DiscordProvider
        case "whatsapp-greenapi":
            return WhatsAppGreenApiProvider
        case _:
            _unknown_provider(tag)


def get_provider(config: DiscordConfig | WhatsAppConfig) -> NotifierProvider:
    """Build the provider matching the config's `provider` tag."""
    return provider_class(config.provider)(config)


def get_providers(config: MultiProviderConfig) -> list[NotifierProvider]:
    """
    Build every enabled provider, in declaration order.

    A provider that fails to construct is logged and skipped so the
    remaining channels still receive notifications.
    """
    if not config.enabled or not config.providers:
        return []

    providers: list[NotifierProvider] = []
    for key, provider_cfg in config.providers.items():
        if not provider_cfg.enabled:
            continue
        try:
            providers.append(get_provider(provider_cfg))
        except Exception:
            logger.exception("Failed to construct provider %s", key)

    return providers
