"""Pytest configuration and fixtures."""

import logging
import shutil
import tempfile
from pathlib import Path

import pytest

from multinotifier.notifications.config import DiscordConfig, WhatsAppConfig


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test artifacts."""
    dirpath = tempfile.mkdtemp()
    yield Path(dirpath)
    shutil.rmtree(dirpath, ignore_errors=True)


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handlers/levels the plugin attaches to the package logger."""
    package_logger = logging.getLogger("multinotifier")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)


@pytest.fixture
def discord_config():
    return DiscordConfig(
        enabled=True,
        webhook_url="https://discord.com/api/webhooks/123/abc",
        username="TestBot",
    )


@pytest.fixture
def whatsapp_config():
    return WhatsAppConfig(
        enabled=True,
        api_url="https://api.green-api.com",
        instance_id="12345",
        api_token="test-token",
        chat_id="11001100110@c.us",
    )


@pytest.fixture
def raw_config():
    """A complete raw config with both providers enabled."""
    return {
        "notifier": {
            "enabled": True,
            "providers": {
                "discord": {
                    "enabled": True,
                    "webhookUrl": "https://discord.com/api/webhooks/123/abc",
                    "username": "TestBot",
                },
                "whatsapp-greenapi": {
                    "enabled": True,
                    "apiUrl": "https://api.green-api.com",
                    "instanceId": "12345",
                    "apiToken": "test-token",
                    "chatId": "11001100110@c.us",
                },
            },
        }
    }


@pytest.fixture
def sample_session():
    return {
        "id": "sess_456",
        "model": {"name": "claude-3.5-sonnet", "limit": {"context": 200000}},
    }


@pytest.fixture
def pending_tool_messages():
    return [
        {
            "info": {"role": "assistant", "tokens": {"input": 500, "output": 1000}},
            "parts": [
                {
                    "type": "tool",
                    "state": {"status": "pending", "input": {"command": "rm -rf /tmp/test"}},
                }
            ],
        }
    ]
