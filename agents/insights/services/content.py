"""
Personality Content Generator — renders insights as short persona-flavored posts.

Each insight type has one template per persona ("style slot"). The slot is
picked at random among those not used in the last two calls for that type, so
repeated calls with the same insight keep changing voice.
"""
import random
import re
from collections import deque
from decimal import Decimal, InvalidOperation
from pathlib import Path
from string import Template
from agents.insights.config import PLATFORM_CHAR_LIMIT
from agents.insights.models.schemas import Insight
import structlog

logger = structlog.get_logger()

PROMPT_PATH = Path(__file__).parent.parent / "templates" / "persona_prompt.txt"
_system_prompt: str | None = None

ELLIPSIS = "…"
RECENT_SLOT_MEMORY = 2
SIMILARITY_THRESHOLD = 0.7

TEMPLATES: dict[str, dict[str, str]] = {
    "large_transfer": {
        "sarcastic": "someone just moved ${value} ${symbol} like it's pocket change. must be nice. whale or exit liquidity, you decide.",
        "technical": "whale transfer: ${value} ${symbol} from ${from} to ${to} in block ${block}. gas at ${gas_gwei} gwei.",
        "analytical": "whale alert: ${value} ${symbol} moved from ${from}. tracking the destination for ${pattern} signals.",
        "street_smart": "${value} ${symbol} on the move from ${from} to ${to}. when whales shuffle bags, retail pays attention or pays the price.",
        "educational": "here's what a ${value} ${symbol} transfer tells us: big wallets rarely move without a reason. watch ${to}.",
        "market_savvy": "${value} ${symbol} whale transfer spotted. otc desk or exchange deposit? positioning like this usually precedes volatility.",
    },
    "new_contract": {
        "sarcastic": "fresh contract at ${address}. 99% chance it's another fork with a new logo.",
        "technical": "new contract deployed: ${address} by ${from} in block ${block}, ${gas_used} gas burned. audit pending.",
        "analytical": "contract ${address} just landed on-chain. first pass flags ${finding}. watching closely.",
        "street_smart": "new contract ${address} from ${from}. unverified code + anon deployer = keep your wallet far away.",
        "educational": "new contract analysis: ${finding} is the first thing to check on ${address}. save this for later.",
        "market_savvy": "deployment at ${address} while network activity runs ${percent}% above baseline. someone is preparing a launch.",
    },
    "token_launch": {
        "sarcastic": "another 'revolutionary' token launch at ${address}. because we definitely needed one more.",
        "technical": "heavy deployment: ${gas_used} gas for contract ${address} in block ${block}. that's token-sized bytecode.",
        "analytical": "potential token launch at ${address}. ${finding} is the first thing to rule out.",
        "street_smart": "token launch from ${from}. aping is not a personality trait. check the liquidity lock first.",
        "educational": "why high-gas deployments matter: ${gas_used} gas usually means a token or a DeFi protocol. this one: ${address}.",
        "market_savvy": "new token contract ${address} with ${pattern} vibes already. launch hype peaks before liquidity does.",
    },
    "token_transfer": {
        "sarcastic": "${count} transfers of ${token} in a few blocks. either adoption or a very busy exit door.",
        "technical": "token ${token}: ${count} Transfer events in the recent block window. contract ${address}.",
        "analytical": "token activity spike: ${count} ${token} transfers detected. pattern recognition says ${pattern}.",
        "street_smart": "${token} wallets are busy: ${count} transfers. follow the money before the money follows you out.",
        "educational": "when one token racks up ${count} transfers this fast, look at holder distribution. ${token} is the case study.",
        "market_savvy": "${token} flow heating up with ${count} transfers. smart money positions while the timeline argues about memes.",
    },
}

DEFAULT_TEMPLATES = {
    "technical": "on-chain update: ${description}.",
    "educational": "blockchain insight: ${description}. here's why it matters for ${symbol} holders.",
    "analytical": "monitoring this: ${description}. pattern so far looks like ${pattern}.",
}

PATTERNS = ["accumulation", "distribution", "wyckoff", "bull flag", "rotation"]
CONTRACT_FINDINGS = [
    "unchecked transfer returns",
    "centralized owner functions",
    "no liquidity lock",
    "a suspicious mint function",
    "a classic honeypot pattern",
]
VARIETY_ADDITIONS = [
    "nfa dyor etc etc",
    "not financial advice (but it should be)",
    "probably nothing",
    "few understand",
    "anon, are you watching this?",
]

_SENTENCE_END = re.compile(r"[.!?](?=\s|$)|\n")


def _get_system_prompt() -> str:
    global _system_prompt
    if _system_prompt is None:
        _system_prompt = PROMPT_PATH.read_text(encoding="utf-8")
    return _system_prompt


def truncate_text(text: str, limit: int = PLATFORM_CHAR_LIMIT) -> str:
    """
    Fit text within limit characters.

    Prefers the last sentence boundary that keeps at least half the budget,
    then the last whole word followed by an ellipsis. Only a text with no
    whitespace at all is cut inside a word.
    """
    text = text.strip()
    if len(text) <= limit:
        return text

    # One character of lookahead: a "." at the cut is only a sentence end if whitespace follows
    ends = [m.end() for m in _SENTENCE_END.finditer(text[:limit + 1]) if m.end() <= limit]
    if ends and ends[-1] >= limit // 2:
        return text[:ends[-1]].rstrip()

    kept = ""
    for token in re.split(r"(\s+)", text):
        if len(kept) + len(token) + len(ELLIPSIS) > limit:
            break
        kept += token
    kept = kept.rstrip()
    if kept:
        return kept + ELLIPSIS
    return text[:limit - len(ELLIPSIS)] + ELLIPSIS


def shorten_address(address: str | None) -> str:
    if not address:
        return "unknown"
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"


def _format_amount(value) -> str:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value) if value else "unknown"
    if not amount.is_finite():
        return "unknown"
    if amount >= 1:
        return f"{amount:,.2f}"
    return format(amount.normalize(), "f")


def _to_gwei(native_value) -> str:
    try:
        gwei = Decimal(str(native_value)) * Decimal(10) ** 9
    except (InvalidOperation, ValueError):
        return "?"
    if not gwei.is_finite():
        return "?"
    return f"{gwei:.2f}".rstrip("0").rstrip(".")


def _format_count(value) -> str:
    try:
        return f"{int(value or 0):,}"
    except (TypeError, ValueError):
        return "?"


def _jaccard(a: str, b: str) -> float:
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    union = words_a | words_b
    return len(words_a & words_b) / len(union) if union else 0.0


class PersonalityContentGenerator:
    def __init__(self, rng: random.Random | None = None, char_limit: int = PLATFORM_CHAR_LIMIT):
        self.rng = rng or random.Random()
        self.char_limit = char_limit
        self._recent_slots: dict[str, deque] = {}

    def templates_for(self, insight_type: str) -> dict[str, str]:
        return TEMPLATES.get(insight_type, DEFAULT_TEMPLATES)

    def choose_slot(self, insight_type: str) -> str:
        templates = self.templates_for(insight_type)
        slots = list(templates)
        memory = self._recent_slots.setdefault(
            insight_type, deque(maxlen=min(RECENT_SLOT_MEMORY, len(slots) - 1)),
        )
        candidates = [s for s in slots if s not in memory] or slots
        slot = self.rng.choice(candidates)
        memory.append(slot)
        return slot

    def generate_content(self, insight: Insight, is_automatic: bool = False) -> str:
        """
        Render an insight as a post no longer than the platform limit.

        Automatic (scheduled) posts lead with the insight title when the
        combined text still fits; interactive replies use the persona line only.
        """
        slot = self.choose_slot(insight.type)
        body = self.fill_template(self.templates_for(insight.type)[slot], insight)
        if is_automatic:
            headline = f"{insight.title}\n{body}"
            if len(headline) <= self.char_limit:
                body = headline
        logger.debug("content_generated", insight_type=insight.type, style=slot, automatic=is_automatic)
        return truncate_text(body, self.char_limit)

    def fill_template(self, template: str, insight: Insight) -> str:
        data = insight.data
        values = {
            "type": insight.type.replace("_", " "),
            "description": insight.description.rstrip("."),
            "value": _format_amount(data.get("value")),
            "symbol": data.get("native_symbol", "BNB"),
            "from": shorten_address(data.get("from_address") or data.get("creator")),
            "to": shorten_address(data.get("to_address") or data.get("contract_address")),
            "address": shorten_address(
                data.get("contract_address") or data.get("token_address") or data.get("from_address")
            ),
            "block": str(data.get("block_number") or "latest"),
            "gas_gwei": _to_gwei(data.get("gas_price", "0")),
            "gas_used": _format_count(data.get("gas_used")),
            "token": data.get("token_symbol") if data.get("token_symbol") not in (None, "Unknown")
            else shorten_address(data.get("token_address")),
            "count": str(data.get("transfer_count", 1)),
            "pattern": self.rng.choice(PATTERNS),
            "finding": self.rng.choice(CONTRACT_FINDINGS),
            "percent": str(self.rng.randint(20, 70)),
        }
        return Template(template).safe_substitute(values)

    def create_persona_prompt(self, insight: Insight) -> tuple[str, str]:
        """System and user prompts for the text generation path."""
        user_message = (
            "Create a post about this on-chain insight:\n"
            f"Type: {insight.type}\n"
            f"Title: {insight.title}\n"
            f"Description: {insight.description}\n"
            f"Severity: {insight.severity}\n"
            f"Data: {insight.model_dump_json(include={'data'})}\n\n"
            f"Make it engaging, informative, and true to character. Include relevant metrics. "
            f"Maximum {self.char_limit - 40} characters."
        )
        return _get_system_prompt(), user_message

    def add_variety(self, content: str, previous_posts: list[str] | None = None) -> str:
        """Append a sign-off when the content is too close to one of the last five posts."""
        for post in (previous_posts or [])[:5]:
            if _jaccard(content, post) > SIMILARITY_THRESHOLD:
                logger.debug("content_too_similar", similarity_threshold=SIMILARITY_THRESHOLD)
                return f"{content}\n\n{self.rng.choice(VARIETY_ADDITIONS)}"
        return content
