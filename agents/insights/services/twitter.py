"""
Twitter Service — turns insights into posts and hands them to a publisher.

Works in two modes: with a text generator configured, a persona prompt goes to
the model and the reply is enhanced; without one, the template generator is
used. Either way the result fits the platform limit.
"""
import asyncio
from collections import OrderedDict, deque
from agents.insights.config import (
    ContentConfig, HASHTAG_BUDGET, POSTED_KEYS_KEPT, RECENT_POSTS_KEPT,
)
from agents.insights.models.schemas import Insight
from agents.insights.services.content import PersonalityContentGenerator, truncate_text
from agents.insights.services.enhancer import ContentEnhancer
from agents.insights.services.publisher import Publisher
from agents.insights.services.text_generator import TextGenerator
from shared.utils.clock import Clock, system_clock
import structlog

logger = structlog.get_logger()

HASHTAGS = {
    "large_transfer": ["#WhaleAlert", "#BNBChain"],
    "new_contract": ["#BSC", "#DeFi"],
    "token_launch": ["#BSC", "#DeFi"],
    "token_transfer": ["#BNBChain", "#Tokens"],
}
DEFAULT_HASHTAGS = ["#BNB", "#Crypto"]

POSITIVE_KEYWORDS = ["bullish", "growth", "adoption", "milestone", "record", "accumul"]
NEGATIVE_KEYWORDS = ["dump", "sell", "rug", "exploit", "hack", "scam"]


class TwitterService:
    def __init__(
        self,
        publisher: Publisher | None = None,
        text_generator: TextGenerator | None = None,
        config: ContentConfig | None = None,
        generator: PersonalityContentGenerator | None = None,
        enhancer: ContentEnhancer | None = None,
        clock: Clock = system_clock,
    ):
        self.config = config or ContentConfig()
        self.publisher = publisher
        self.text_generator = text_generator
        self.generator = generator or PersonalityContentGenerator(char_limit=self.config.char_limit)
        self.enhancer = enhancer or ContentEnhancer(native_symbol=self.config.native_symbol)
        self.clock = clock
        self.recent_posts: deque[str] = deque(maxlen=RECENT_POSTS_KEPT)
        self._posted_keys: OrderedDict[str, None] = OrderedDict()

    @property
    def char_limit(self) -> int:
        return self.config.char_limit

    async def generate_tweet_text(self, insight: Insight, is_automatic: bool = True) -> str:
        if self.text_generator is None:
            logger.debug("text_generator_missing_using_templates", insight_type=insight.type)
            return self._template_text(insight, is_automatic)

        system_prompt, user_message = self.generator.create_persona_prompt(insight)
        try:
            text = await self.text_generator.generate(system_prompt, user_message, max_tokens=100)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("text_generation_failed", error=str(e), insight_type=insight.type)
            fallback = self.generator.generate_content(insight, is_automatic)
            fallback = self.enhancer.enhance_content(fallback, self.determine_sentiment(insight))
            fallback = self.enhancer.ensure_variety(fallback, list(self.recent_posts))
            return self._finish(fallback, insight)

        text = self.enhancer.enhance_content(text.strip(), self.determine_sentiment(insight))
        text = self.enhancer.add_technical_context(text, insight.data)
        if insight.type == "new_contract" or insight.severity == "low":
            text = self.enhancer.make_sarcastic(text)
        text = self.enhancer.ensure_variety(text, list(self.recent_posts))
        return self._finish(text, insight)

    def _template_text(self, insight: Insight, is_automatic: bool) -> str:
        content = self.generator.generate_content(insight, is_automatic)
        content = self.generator.add_variety(content, list(self.recent_posts))
        return self._finish(content, insight)

    def _finish(self, content: str, insight: Insight) -> str:
        return self.add_hashtags(truncate_text(content, self.char_limit), insight)

    def add_hashtags(self, content: str, insight: Insight) -> str:
        """Append type hashtags only when the post stays under the hashtag budget."""
        tags = "\n\n" + " ".join(HASHTAGS.get(insight.type, DEFAULT_HASHTAGS))
        budget = min(HASHTAG_BUDGET, self.char_limit)
        if len(content) + len(tags) <= budget:
            return content + tags
        return content

    def determine_sentiment(self, insight: Insight) -> str:
        description = insight.description.lower()
        if insight.severity == "high":
            return "positive" if "accumul" in description else "negative"
        has_positive = any(k in description for k in POSITIVE_KEYWORDS)
        has_negative = any(k in description for k in NEGATIVE_KEYWORDS)
        if has_positive and not has_negative:
            return "positive"
        if has_negative and not has_positive:
            return "negative"
        return "neutral"

    def explorer_link(self, insight: Insight) -> str | None:
        base = self.config.explorer_url.rstrip("/")
        data = insight.data
        if data.get("hash"):
            return f"{base}/tx/{data['hash']}"
        if data.get("contract_address"):
            return f"{base}/address/{data['contract_address']}"
        return None

    def already_posted(self, insight: Insight) -> bool:
        return insight.key in self._posted_keys

    def _remember(self, insight: Insight, text: str):
        self._posted_keys[insight.key] = None
        while len(self._posted_keys) > POSTED_KEYS_KEPT:
            self._posted_keys.popitem(last=False)
        self.recent_posts.appendleft(text)

    async def post_insight(self, insight: Insight) -> bool:
        if self.already_posted(insight):
            logger.debug("duplicate_insight_skipped", key=insight.key)
            return False
        if self.publisher is None:
            logger.warning("publisher_not_configured")
            return False

        try:
            text = await self.generate_tweet_text(insight)
            link = self.explorer_link(insight)
            if link and len(text) + len(link) + 2 <= self.char_limit:
                text = f"{text}\n\n{link}"

            logger.info("posting_insight", insight_type=insight.type, length=len(text))
            published = await self.publisher.publish(text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("post_failed", error=str(e), insight_type=insight.type)
            return False

        if published:
            self._remember(insight, text)
            logger.info("insight_posted", insight_type=insight.type, severity=insight.severity)
        return bool(published)

    async def post_insights(self, insights: list[Insight], max_posts: int = 3) -> int:
        """Post up to max_posts insights, pausing between posts."""
        posted = 0
        for insight in insights[:max_posts]:
            if await self.post_insight(insight):
                posted += 1
                if posted < max_posts and len(insights) > posted:
                    await self.clock.sleep(self.config.post_spacing_seconds)
        return posted
