"""Provider implementation tests with mocked HTTP."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from multinotifier.errors import ConfigError, TransportError
from multinotifier.notifications.config import DiscordConfig, WhatsAppConfig
from multinotifier.notifications.events import EventType, NotificationPayload
from multinotifier.notifications.providers.discord import DiscordProvider
from multinotifier.notifications.providers.whatsapp_greenapi import (
    WhatsAppGreenApiProvider,
)


def _make_payload(**kwargs) -> NotificationPayload:
    defaults = {
        "event_type": EventType.SESSION_IDLE,
        "session_id": "sess_123",
        "timestamp": "2026-01-29T12:00:00+00:00",
        "project_name": "my-project",
        "peak_tokens": 3500,
        "peak_context_percentage": 1.75,
        "model_name": "claude-3.5-sonnet",
        "last_text": "Task completed successfully",
    }
    defaults.update(kwargs)
    return NotificationPayload(**defaults)


def _permission_payload() -> NotificationPayload:
    return _make_payload(
        event_type=EventType.PERMISSION_ASKED,
        session_id="sess_456",
        peak_tokens=1500,
        peak_context_percentage=0.75,
        last_text="Waiting for approval",
        pending_command="rm -rf /tmp/test",
    )


def _mock_client(*responses) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.post = AsyncMock(side_effect=list(responses))
    mock_client.aclose = AsyncMock()
    return mock_client


# ---------------------------------------------------------------------------
# Discord provider
# ---------------------------------------------------------------------------


class TestDiscordProvider:
    def test_name(self, discord_config):
        assert DiscordProvider(discord_config).name == "Discord"

    def test_validate_missing_webhook(self):
        result = DiscordProvider.validate_config({})
        assert result.valid is False
        assert result.errors == ["Missing webhookUrl"]

    def test_validate_wrong_prefix(self):
        result = DiscordProvider.validate_config({"webhookUrl": "https://example.com/api/webhooks/1"})
        assert result.valid is False
        assert result.errors == ["webhookUrl must be a valid Discord webhook URL"]

    def test_validate_ok(self):
        result = DiscordProvider.validate_config(
            {"webhookUrl": "https://discord.com/api/webhooks/1/abc"}
        )
        assert result.valid is True
        assert result.errors == []

    def test_construct_with_bad_url_raises(self):
        cfg = DiscordConfig(enabled=True, webhook_url="not-a-url")
        with pytest.raises(ConfigError):
            DiscordProvider(cfg)

    def test_idle_embed(self, discord_config):
        body = DiscordProvider(discord_config).build_body(EventType.SESSION_IDLE, _make_payload())
        embed = body["embeds"][0]

        assert body["username"] == "TestBot"
        assert "avatar_url" not in body
        assert "Session Idle" in embed["title"]
        assert embed["color"] == 0x00FF00
        assert embed["description"] == "Task completed successfully"
        assert embed["footer"] == {"text": "sess_123"}
        assert embed["timestamp"] == "2026-01-29T12:00:00+00:00"
        values = [f["value"] for f in embed["fields"]]
        assert values == ["3,500 tokens", "1.75%", "claude-3.5-sonnet"]

    def test_permission_embed(self):
        cfg = DiscordConfig(
            enabled=True,
            webhook_url="https://discord.com/api/webhooks/1/abc",
            avatar_url="https://example.com/bot.png",
        )
        body = DiscordProvider(cfg).build_body(EventType.PERMISSION_ASKED, _permission_payload())
        embed = body["embeds"][0]

        assert body["username"] == "OpenCode Notifier"
        assert body["avatar_url"] == "https://example.com/bot.png"
        assert "Permission Required" in embed["title"]
        assert embed["color"] == 0xFFA500
        assert len(embed["fields"]) == 4
        assert "Pending Command" in embed["fields"][0]["name"]
        assert "rm -rf /tmp/test" in embed["fields"][0]["value"]
        assert embed["fields"][0]["inline"] is False

    @pytest.mark.asyncio
    async def test_send_posts_embed(self, discord_config):
        provider = DiscordProvider(discord_config)
        mock_client = _mock_client(httpx.Response(204))

        with patch(
            "multinotifier.notifications.providers.discord.httpx.AsyncClient",
            return_value=mock_client,
        ):
            await provider.send(EventType.SESSION_IDLE, _make_payload())

        mock_client.post.assert_awaited_once()
        url = mock_client.post.call_args[0][0]
        payload = mock_client.post.call_args[1]["json"]
        assert url == "https://discord.com/api/webhooks/123/abc"
        assert "embeds" in payload
        mock_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_2xx_raises_without_retry(self, discord_config):
        provider = DiscordProvider(discord_config)
        mock_client = _mock_client(httpx.Response(500, text="Internal Server Error"))

        with patch(
            "multinotifier.notifications.providers.discord.httpx.AsyncClient",
            return_value=mock_client,
        ):
            with pytest.raises(TransportError) as excinfo:
                await provider.send(EventType.SESSION_IDLE, _make_payload())

        assert excinfo.value.status == 500
        assert "Internal Server Error" in str(excinfo.value)
        assert mock_client.post.await_count == 1

    @pytest.mark.asyncio
    async def test_network_error_becomes_transport_error(self, discord_config):
        provider = DiscordProvider(discord_config)
        mock_client = _mock_client(httpx.ConnectError("connection refused"))

        with patch(
            "multinotifier.notifications.providers.discord.httpx.AsyncClient",
            return_value=mock_client,
        ):
            with pytest.raises(TransportError) as excinfo:
                await provider.send(EventType.SESSION_IDLE, _make_payload())

        assert excinfo.value.status is None

    @pytest.mark.asyncio
    async def test_connected_client_is_reused(self, discord_config):
        provider = DiscordProvider(discord_config)
        mock_client = _mock_client(httpx.Response(204), httpx.Response(204))

        with patch(
            "multinotifier.notifications.providers.discord.httpx.AsyncClient",
            return_value=mock_client,
        ):
            await provider.connect()
            await provider.send(EventType.SESSION_IDLE, _make_payload())
            await provider.send(EventType.SESSION_IDLE, _make_payload())
            mock_client.aclose.assert_not_awaited()
            await provider.disconnect()

        assert mock_client.post.await_count == 2
        mock_client.aclose.assert_awaited_once()


# ---------------------------------------------------------------------------
# WhatsApp Green-API provider
# ---------------------------------------------------------------------------


class TestWhatsAppGreenApiProvider:
    def test_name(self, whatsapp_config):
        assert WhatsAppGreenApiProvider(whatsapp_config).name == "WhatsApp"

    def test_validate_missing_fields(self):
        result = WhatsAppGreenApiProvider.validate_config({})
        assert result.valid is False
        assert result.errors == [
            "Missing apiUrl",
            "Missing instanceId",
            "Missing apiToken",
            "Missing chatId",
        ]

    def test_validate_typed_config(self, whatsapp_config):
        assert WhatsAppGreenApiProvider.validate_config(whatsapp_config).valid is True

    def test_endpoint(self, whatsapp_config):
        provider = WhatsAppGreenApiProvider(whatsapp_config)
        assert provider.endpoint == (
            "https://api.green-api.com/waInstance12345/sendMessage/test-token"
        )

    def test_endpoint_trailing_slash(self):
        cfg = WhatsAppConfig(
            enabled=True,
            api_url="https://api.green-api.com/",
            instance_id="1",
            api_token="t",
            chat_id="c",
        )
        assert WhatsAppGreenApiProvider(cfg).endpoint == (
            "https://api.green-api.com/waInstance1/sendMessage/t"
        )

    def test_timeout_in_seconds(self, whatsapp_config):
        assert WhatsAppGreenApiProvider(whatsapp_config).timeout_seconds == 10.0

    def test_idle_message(self, whatsapp_config):
        message = WhatsAppGreenApiProvider(whatsapp_config).format_message(
            EventType.SESSION_IDLE, _make_payload()
        )
        assert "Session Idle" in message
        assert "Event: session.idle" in message
        assert "Project: my-project" in message
        assert "Session ID: sess_123" in message
        assert "Peak Tokens: 3,500 tokens" in message
        assert "Peak Context: 1.75%" in message
        assert "Model: claude-3.5-sonnet" in message
        assert "Task completed successfully" in message
        assert "Pending Command:" not in message

    def test_permission_message(self, whatsapp_config):
        message = WhatsAppGreenApiProvider(whatsapp_config).format_message(
            EventType.PERMISSION_ASKED, _permission_payload()
        )
        assert "Permission Required" in message
        assert "Pending Command:" in message
        assert message.rstrip().endswith("rm -rf /tmp/test")
        assert message.index("Last Response:") < message.index("Pending Command:")

    def test_full_length_text_is_sent_verbatim(self, whatsapp_config):
        text = "y" * 1500
        message = WhatsAppGreenApiProvider(whatsapp_config).format_message(
            EventType.SESSION_IDLE, _make_payload(last_text=text)
        )
        assert message.endswith("Last Response:\n" + text)

    @pytest.mark.asyncio
    async def test_send_posts_message(self, whatsapp_config):
        provider = WhatsAppGreenApiProvider(whatsapp_config)
        mock_client = _mock_client(httpx.Response(200, json={"idMessage": "msg_123"}))

        with patch(
            "multinotifier.notifications.providers.whatsapp_greenapi.httpx.AsyncClient",
            return_value=mock_client,
        ):
            await provider.send(EventType.SESSION_IDLE, _make_payload())

        url = mock_client.post.call_args[0][0]
        body = mock_client.post.call_args[1]["json"]
        assert url == "https://api.green-api.com/waInstance12345/sendMessage/test-token"
        assert body["chatId"] == "11001100110@c.us"
        assert "Session ID: sess_123" in body["message"]
        mock_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retry_on_502_then_success(self, whatsapp_config):
        provider = WhatsAppGreenApiProvider(whatsapp_config, base_delay=0)
        mock_client = _mock_client(
            httpx.Response(502, text="Bad Gateway"),
            httpx.Response(200, json={"idMessage": "msg_789"}),
        )

        with patch(
            "multinotifier.notifications.providers.whatsapp_greenapi.httpx.AsyncClient",
            return_value=mock_client,
        ):
            await provider.send(EventType.SESSION_IDLE, _make_payload())

        assert mock_client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_no_retry_on_401(self, whatsapp_config):
        provider = WhatsAppGreenApiProvider(whatsapp_config, base_delay=0)
        mock_client = _mock_client(httpx.Response(401, text="Unauthorized"))

        with patch(
            "multinotifier.notifications.providers.whatsapp_greenapi.httpx.AsyncClient",
            return_value=mock_client,
        ):
            with pytest.raises(TransportError) as excinfo:
                await provider.send(EventType.SESSION_IDLE, _make_payload())

        assert excinfo.value.status == 401
        assert mock_client.post.await_count == 1
        mock_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, whatsapp_config):
        provider = WhatsAppGreenApiProvider(whatsapp_config, base_delay=0)
        mock_client = _mock_client(
            httpx.Response(503, text="Unavailable"),
            httpx.Response(502, text="Bad Gateway"),
            httpx.Response(500, text="Oops"),
        )

        with patch(
            "multinotifier.notifications.providers.whatsapp_greenapi.httpx.AsyncClient",
            return_value=mock_client,
        ):
            with pytest.raises(TransportError) as excinfo:
                await provider.send(EventType.SESSION_IDLE, _make_payload())

        assert excinfo.value.status == 500
        assert mock_client.post.await_count == 3

    @pytest.mark.asyncio
    async def test_network_error_is_retried(self, whatsapp_config):
        provider = WhatsAppGreenApiProvider(whatsapp_config, base_delay=0)
        mock_client = _mock_client(
            httpx.ReadTimeout("timed out"),
            httpx.Response(200, json={}),
        )

        with patch(
            "multinotifier.notifications.providers.whatsapp_greenapi.httpx.AsyncClient",
            return_value=mock_client,
        ):
            await provider.send(EventType.SESSION_IDLE, _make_payload())

        assert mock_client.post.await_count == 2
