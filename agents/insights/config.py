from pydantic import BaseModel, field_validator
from shared.config import (
    settings, Settings, positive_int_or_default, positive_float_or_default, bool_or_default,
)

AGENT_NAME = "insights"

# Analyzer thresholds (native units)
WHALE_THRESHOLD = 100
SEVERITY_THRESHOLDS = {
    "high": 1_000,
    "medium": 500,
    "low": 100,
}
HIGH_GAS_CONTRACT_THRESHOLD = 5_000_000
TOKEN_ACTIVITY_MIN_TRANSFERS = 5
TOKEN_ACTIVITY_HIGH_TRANSFERS = 10
NATIVE_USD_ESTIMATE = 600  # rough BNB/USD for descriptions only

# Content
PLATFORM_CHAR_LIMIT = 280
HASHTAG_BUDGET = 260
RECENT_POSTS_KEPT = 10
POSTED_KEYS_KEPT = 100

# Interactive summaries
SUMMARY_MAX_INSIGHTS = 5


class _ValidatedConfig(BaseModel):
    """Immutable config whose numeric fields fall back to their defaults when invalid."""

    model_config = {"frozen": True}

    @classmethod
    def _default_for(cls, name: str):
        return cls.model_fields[name].default


class ChainClientConfig(_ValidatedConfig):
    rpc_url: str = "https://bsc-dataseed.binance.org/"
    block_range: int = 100
    retry_attempts: int = 3
    retry_base_delay: float = 1.0
    cache_ttl_ms: int = 60_000
    timeout: float = 30.0
    large_tx_threshold: float = 100.0

    @field_validator("rpc_url", mode="before")
    @classmethod
    def _url(cls, value):
        text = str(value or "").strip()
        return text or cls._default_for("rpc_url")

    @field_validator("block_range", "retry_attempts", "cache_ttl_ms", mode="before")
    @classmethod
    def _positive_int(cls, value, info):
        return positive_int_or_default(value, cls._default_for(info.field_name))

    @field_validator("retry_base_delay", "timeout", "large_tx_threshold", mode="before")
    @classmethod
    def _positive_float(cls, value, info):
        return positive_float_or_default(value, cls._default_for(info.field_name))

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000


class SchedulerConfig(_ValidatedConfig):
    enabled: bool = False
    check_interval_minutes: int = 30
    health_check_interval_seconds: int = 300
    auto_post: bool = False
    min_post_severity: str = "high"
    max_posts_per_cycle: int = 1

    @field_validator("enabled", "auto_post", mode="before")
    @classmethod
    def _flag(cls, value, info):
        return bool_or_default(value, cls._default_for(info.field_name))

    @field_validator(
        "check_interval_minutes", "health_check_interval_seconds", "max_posts_per_cycle",
        mode="before",
    )
    @classmethod
    def _positive_int(cls, value, info):
        return positive_int_or_default(value, cls._default_for(info.field_name))

    @field_validator("min_post_severity", mode="before")
    @classmethod
    def _severity(cls, value):
        text = str(value).strip().lower()
        return text if text in ("low", "medium", "high") else "high"


class ContentConfig(_ValidatedConfig):
    native_symbol: str = "BNB"
    explorer_url: str = "https://bscscan.com"
    char_limit: int = PLATFORM_CHAR_LIMIT
    post_spacing_seconds: float = 30.0
    model: str = "claude-sonnet-4-20250514"
    temperature: float = 0.85

    @field_validator("char_limit", mode="before")
    @classmethod
    def _positive_int(cls, value, info):
        return positive_int_or_default(value, cls._default_for(info.field_name))

    @field_validator("post_spacing_seconds", "temperature", mode="before")
    @classmethod
    def _positive_float(cls, value, info):
        return positive_float_or_default(value, cls._default_for(info.field_name))


def chain_client_config(source: Settings = settings) -> ChainClientConfig:
    return ChainClientConfig(
        rpc_url=source.RPC_URL,
        block_range=source.RPC_BLOCK_RANGE,
        retry_attempts=source.RPC_RETRY_ATTEMPTS,
        retry_base_delay=source.RPC_RETRY_BASE_DELAY,
        cache_ttl_ms=source.RPC_CACHE_TTL,
        timeout=source.RPC_TIMEOUT,
        large_tx_threshold=source.LARGE_TX_THRESHOLD,
    )


def scheduler_config(source: Settings = settings) -> SchedulerConfig:
    return SchedulerConfig(
        enabled=source.INSIGHTS_SCHEDULED,
        check_interval_minutes=source.INSIGHTS_CHECK_INTERVAL,
        health_check_interval_seconds=source.HEALTH_CHECK_INTERVAL,
        auto_post=source.INSIGHTS_AUTO_POST,
        min_post_severity=source.INSIGHTS_MIN_SEVERITY,
        max_posts_per_cycle=source.INSIGHTS_MAX_POSTS,
    )


def content_config(source: Settings = settings) -> ContentConfig:
    return ContentConfig(
        native_symbol=source.NATIVE_SYMBOL,
        explorer_url=source.EXPLORER_URL,
        post_spacing_seconds=source.POST_SPACING_SECONDS,
        model=source.CONTENT_MODEL,
        temperature=source.CONTENT_TEMPERATURE,
    )
