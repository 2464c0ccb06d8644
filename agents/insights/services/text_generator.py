"""
Text generators — optional language-model backend for post text.
"""
import asyncio
from typing import Protocol, runtime_checkable
from shared.claude_client import ask_claude
from agents.insights.services.errors import TextGenerationError


@runtime_checkable
class TextGenerator(Protocol):
    async def generate(self, system_prompt: str, user_message: str, max_tokens: int = 100) -> str:
        ...


class ClaudeTextGenerator:
    def __init__(self, model: str = "claude-sonnet-4-20250514", temperature: float = 0.85):
        self.model = model
        self.temperature = min(temperature, 1.0)

    async def generate(self, system_prompt: str, user_message: str, max_tokens: int = 100) -> str:
        text = await asyncio.to_thread(
            ask_claude,
            system_prompt=system_prompt,
            user_message=user_message,
            model=self.model,
            max_tokens=max_tokens,
            temperature=self.temperature,
        )
        text = (text or "").strip().strip('"')
        if not text:
            raise TextGenerationError("Model returned an empty post")
        return text
