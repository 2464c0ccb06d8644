"""
Content Enhancer — adds the agent's voice to model-generated or template text.
"""
import random
import re
from typing import Any

OPENERS = ["anons,", "gm degens,", "listen up,", "quick alpha:", "breaking:", "on-chain update:", "whale watch:"]
CLOSERS = ["dyor", "nfa", "probably nothing", "few understand", "stay based", "gn"]
REACTIONS = {
    "positive": ["bullish", "based", "gigabrain move", "smart money"],
    "negative": ["bearish", "ngmi", "rekt incoming", "red flags"],
    "neutral": ["interesting", "monitoring this", "taking notes", "eyes on"],
}
PERSONALITY_MARKERS = [
    "anon", "degen", "gm", "gn", "ser", "fren", "based", "ngmi", "wagmi",
    "wen", "nfa", "dyor", "probably nothing", "few understand",
]
SARCASTIC_QUOTES = {
    "innovative": '"innovative"',
    "revolutionary": '"revolutionary"',
    "game-changing": '"game-changing"',
    "decentralized": '"decentralized"',
    "community-driven": '"community-driven"',
    "next big thing": 'next "big thing"',
}
SYNONYMS = {
    "large": ["massive", "huge", "significant", "substantial"],
    "transfer": ["movement", "transaction", "flow"],
    "whale": ["big player", "major holder", "smart money"],
    "new": ["fresh", "just deployed", "recently launched"],
    "contract": ["smart contract", "protocol", "dapp"],
}

CLOSER_ROOM = 220
CONTEXT_ROOM = 200
PATTERN_OVERLAP_THRESHOLD = 0.5


class ContentEnhancer:
    def __init__(self, rng: random.Random | None = None, native_symbol: str = "BNB"):
        self.rng = rng or random.Random()
        self.native_symbol = native_symbol

    def enhance_content(self, content: str, sentiment: str = "neutral") -> str:
        """Add an opener, a sentiment reaction and a closer unless the text already has personality."""
        if self.has_personality_markers(content):
            return content

        enhanced = content
        if not self._has_opener(content):
            enhanced = f"{self.rng.choice(OPENERS)} {enhanced}"

        reaction = self.rng.choice(REACTIONS.get(sentiment, REACTIONS["neutral"]))
        enhanced = f"{enhanced.rstrip()} {reaction}."

        if len(enhanced) < CLOSER_ROOM:
            enhanced = f"{enhanced}\n\n{self.rng.choice(CLOSERS)}"
        return enhanced

    def has_personality_markers(self, content: str) -> bool:
        lowered = content.lower()
        return any(re.search(rf"\b{re.escape(marker)}\b", lowered) for marker in PERSONALITY_MARKERS)

    def _has_opener(self, content: str) -> bool:
        lowered = content.lower()
        return any(lowered.startswith(opener) for opener in OPENERS)

    def make_sarcastic(self, content: str) -> str:
        result = content
        for word, replacement in SARCASTIC_QUOTES.items():
            result = re.sub(rf'(?<!")\b{re.escape(word)}\b(?!")', replacement, result, flags=re.IGNORECASE)
        return result

    def add_technical_context(self, content: str, data: dict[str, Any]) -> str:
        additions = []
        if data.get("block_number"):
            additions.append(f"block: {data['block_number']}")
        try:
            value = float(data.get("value") or 0)
        except (TypeError, ValueError):
            value = 0
        if value > 0:
            additions.append(f"value: {data['value']} {self.native_symbol}")

        if additions and len(content) < CONTEXT_ROOM:
            return f"{content} ({', '.join(additions)})"
        return content

    def ensure_variety(self, content: str, recent_contents: list[str]) -> str:
        """Swap in synonyms when 2/3-word phrasing overlaps too much with a recent post."""
        patterns = _extract_patterns(content)
        for recent in recent_contents:
            if _overlap(patterns, _extract_patterns(recent)) > PATTERN_OVERLAP_THRESHOLD:
                return self._vary_language(content)
        return content

    def _vary_language(self, content: str) -> str:
        varied = content
        for word, alternatives in SYNONYMS.items():
            pattern = re.compile(rf"\b{word}\b", re.IGNORECASE)
            if pattern.search(varied):
                varied = pattern.sub(self.rng.choice(alternatives), varied)
        return varied


def _extract_patterns(content: str) -> set[str]:
    words = content.lower().split()
    patterns = set()
    for i in range(len(words) - 1):
        patterns.add(f"{words[i]} {words[i + 1]}")
        if i < len(words) - 2:
            patterns.add(f"{words[i]} {words[i + 1]} {words[i + 2]}")
    return patterns


def _overlap(first: set[str], second: set[str]) -> float:
    union = first | second
    return len(first & second) / len(union) if union else 0.0
