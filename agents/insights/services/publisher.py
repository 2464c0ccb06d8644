"""
Publishers — where finished posts go.

The scheduler only needs `publish(text) -> bool`; concrete adapters are
chosen at wiring time.
"""
from typing import Protocol, runtime_checkable
from shared.telegram_bot import send_alert
from agents.insights.services.errors import PublishError
import structlog

logger = structlog.get_logger()


@runtime_checkable
class Publisher(Protocol):
    async def publish(self, text: str) -> bool:
        ...


class LogPublisher:
    """Dry-run publisher: records posts in the log and keeps them in memory."""

    def __init__(self):
        self.published: list[str] = []

    async def publish(self, text: str) -> bool:
        self.published.append(text)
        logger.info("post_logged", length=len(text), text=text)
        return True


class TelegramPublisher:
    def __init__(self, token: str, chat_id: int | str):
        if not token or not chat_id:
            raise PublishError("Telegram publisher needs a bot token and a chat id")
        self.token = token
        self.chat_id = chat_id

    async def publish(self, text: str) -> bool:
        result = await send_alert(self.token, self.chat_id, text)
        if not result.get("ok", False):
            raise PublishError(f"Telegram rejected the message: {result.get('description', 'unknown error')}")
        return True
