"""
Tests for the publisher and text generator adapters.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import pytest
from agents.insights.services.errors import PublishError, TextGenerationError
from agents.insights.services.publisher import LogPublisher, Publisher, TelegramPublisher
from agents.insights.services.text_generator import ClaudeTextGenerator, TextGenerator
from shared.claude_client import ask_claude


def test_adapters_satisfy_protocols():
    assert isinstance(LogPublisher(), Publisher)
    assert isinstance(TelegramPublisher("123:abc", "-100"), Publisher)
    assert isinstance(ClaudeTextGenerator(), TextGenerator)


def test_telegram_publisher_requires_credentials():
    with pytest.raises(PublishError):
        TelegramPublisher("", "-100")


@pytest.mark.asyncio
async def test_telegram_publisher_sends_to_chat():
    with patch(
        "agents.insights.services.publisher.send_alert",
        AsyncMock(return_value={"ok": True}),
    ) as send:
        assert await TelegramPublisher("123:abc", "-100").publish("whale spotted") is True
    send.assert_awaited_once_with("123:abc", "-100", "whale spotted")


@pytest.mark.asyncio
async def test_telegram_publisher_raises_on_rejection():
    with patch(
        "agents.insights.services.publisher.send_alert",
        AsyncMock(return_value={"ok": False, "description": "chat not found"}),
    ):
        with pytest.raises(PublishError, match="chat not found"):
            await TelegramPublisher("123:abc", "-100").publish("whale spotted")


@pytest.mark.asyncio
async def test_claude_generator_strips_quotes():
    with patch("agents.insights.services.text_generator.ask_claude", return_value='"gm, whale awake"\n') as ask:
        text = await ClaudeTextGenerator(temperature=1.4).generate("system", "user", max_tokens=80)
    assert text == "gm, whale awake"
    assert ask.call_args.kwargs["temperature"] == 1.0
    assert ask.call_args.kwargs["max_tokens"] == 80


@pytest.mark.asyncio
async def test_claude_generator_rejects_empty_output():
    with patch("agents.insights.services.text_generator.ask_claude", return_value="  "):
        with pytest.raises(TextGenerationError):
            await ClaudeTextGenerator().generate("system", "user")


def test_ask_claude_joins_text_blocks():
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(content=[
        SimpleNamespace(type="text", text="whale "),
        SimpleNamespace(type="tool_use"),
        SimpleNamespace(type="text", text="spotted"),
    ])

    assert ask_claude("system", "user", client=client) == "whale spotted"
    assert client.messages.create.call_args.kwargs["system"] == "system"
