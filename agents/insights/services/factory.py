"""
Wires the insight service from settings. The only place that reads global configuration.
"""
from shared.config import Settings, settings as default_settings
from shared.metrics import CycleMetrics
from agents.insights.config import (
    AGENT_NAME, chain_client_config, scheduler_config, content_config,
)
from agents.insights.services.analyzer import InsightAnalyzer
from agents.insights.services.chain_client import ChainClient
from agents.insights.services.publisher import LogPublisher, Publisher, TelegramPublisher
from agents.insights.services.scheduler import ScheduledInsightsService
from agents.insights.services.text_generator import ClaudeTextGenerator, TextGenerator
from agents.insights.services.twitter import TwitterService
import structlog

logger = structlog.get_logger()


def build_publisher(source: Settings) -> Publisher:
    if source.TELEGRAM_BOT_TOKEN and source.TELEGRAM_CHAT_ID:
        return TelegramPublisher(source.TELEGRAM_BOT_TOKEN, source.TELEGRAM_CHAT_ID)
    logger.info("publisher_dry_run", reason="no telegram chat configured")
    return LogPublisher()


def build_text_generator(source: Settings) -> TextGenerator | None:
    if not source.ANTHROPIC_API_KEY:
        logger.info("text_generator_disabled", reason="ANTHROPIC_API_KEY not set")
        return None
    return ClaudeTextGenerator(model=source.CONTENT_MODEL, temperature=source.CONTENT_TEMPERATURE)


def build_service(
    source: Settings | None = None,
    publisher: Publisher | None = None,
    text_generator: TextGenerator | None = None,
) -> ScheduledInsightsService:
    source = source or default_settings
    content = content_config(source)
    twitter = TwitterService(
        publisher=publisher or build_publisher(source),
        text_generator=text_generator if text_generator is not None else build_text_generator(source),
        config=content,
    )
    return ScheduledInsightsService(
        client=ChainClient(chain_client_config(source)),
        analyzer=InsightAnalyzer(native_symbol=content.native_symbol),
        twitter=twitter,
        config=scheduler_config(source),
        metrics=CycleMetrics(AGENT_NAME, data_dir=source.METRICS_DIR),
    )
