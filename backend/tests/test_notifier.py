"""Tests for Discord message formatting and delivery."""
import asyncio
import json

import httpx
import pytest

from antenna.errors import ConfigError, TransportError
from antenna.models import Update
from antenna.nodes.notifier import (
    MAX_DISCORD_CHARS,
    DiscordNotifier,
    deliver_in_order,
    format_message,
)

from conftest import RecordingNotifier

WEBHOOK = "https://discord.com/api/webhooks/123/token"


def _recording_transport(status=204):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status)

    return httpx.MockTransport(handler), requests


class TestFormatMessage:
    def test_title_and_body(self):
        assert format_message(Update("12:00", "Hello")) == "12:00: Hello"

    def test_bare_id_becomes_role_mention(self):
        assert format_message(Update("12:00", "Hello"), "42") == "<@&42> 12:00: Hello"

    def test_preformatted_mention_is_kept(self):
        assert format_message(Update("12:00", "Hello"), "<@99>") == "<@99> 12:00: Hello"

    def test_long_content_is_bounded(self):
        content = format_message(Update("12:00", "x" * 5000), "42")
        assert len(content) == MAX_DISCORD_CHARS
        assert content.endswith("…")


class TestDiscordNotifier:
    def test_posts_content_json(self):
        transport, requests = _recording_transport()
        notifier = DiscordNotifier(WEBHOOK, "42", transport=transport)

        asyncio.run(notifier.send_update(Update("12:00", "Hello")))

        assert len(requests) == 1
        assert requests[0].method == "POST"
        assert str(requests[0].url) == WEBHOOK
        assert json.loads(requests[0].content) == {"content": "<@&42> 12:00: Hello"}

    def test_non_2xx_raises_transport_error(self):
        transport, _ = _recording_transport(status=429)
        notifier = DiscordNotifier(WEBHOOK, "42", transport=transport)

        with pytest.raises(TransportError) as exc_info:
            asyncio.run(notifier.send_update(Update("12:00", "Hello")))
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_network_error_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        notifier = DiscordNotifier(WEBHOOK, transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError):
            asyncio.run(notifier.send_update(Update("12:00", "Hello")))

    def test_empty_webhook_is_rejected(self):
        with pytest.raises(ConfigError):
            DiscordNotifier("  ")

    def test_from_env_requires_both_secrets(self, monkeypatch):
        monkeypatch.setenv("DISCORD_WEBHOOK", WEBHOOK)
        monkeypatch.delenv("DISCORD_MENTION_ID", raising=False)
        with pytest.raises(ConfigError):
            DiscordNotifier.from_env()

        monkeypatch.setenv("DISCORD_MENTION_ID", "42")
        notifier = DiscordNotifier.from_env()
        assert notifier.webhook_url == WEBHOOK
        assert notifier.mention_id == "42"


class TestDeliverInOrder:
    def test_all_sent(self):
        updates = [Update("1", "A"), Update("2", "B")]
        result = asyncio.run(deliver_in_order(RecordingNotifier(), updates))
        assert result.sent == updates
        assert not result.halted

    def test_stops_at_first_failure(self):
        updates = [Update("1", "A"), Update("2", "B"), Update("3", "C")]
        notifier = RecordingNotifier(fail_on={"B"})

        result = asyncio.run(deliver_in_order(notifier, updates))

        assert result.sent == [Update("1", "A")]
        assert result.failed == Update("2", "B")
        assert isinstance(result.error, TransportError)
        assert result.halted
        assert Update("3", "C") not in notifier.attempts
