from typing import Any
from pydantic import field_validator
from pydantic_settings import BaseSettings


def positive_int_or_default(value: Any, default: int) -> int:
    """Parse a positive integer, falling back to the default on anything else."""
    if isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def positive_float_or_default(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        parsed = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def bool_or_default(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off", ""):
        return False
    return default


class Settings(BaseSettings):
    # Blockchain
    RPC_URL: str = "https://bsc-dataseed.binance.org/"
    RPC_BLOCK_RANGE: int = 100
    RPC_RETRY_ATTEMPTS: int = 3
    RPC_RETRY_BASE_DELAY: float = 1.0
    RPC_CACHE_TTL: int = 60_000  # milliseconds
    RPC_TIMEOUT: float = 30.0
    NATIVE_SYMBOL: str = "BNB"
    EXPLORER_URL: str = "https://bscscan.com"
    LARGE_TX_THRESHOLD: float = 100.0

    # Insights
    INSIGHTS_SCHEDULED: bool = False
    INSIGHTS_CHECK_INTERVAL: int = 30  # minutes
    HEALTH_CHECK_INTERVAL: int = 300  # seconds
    INSIGHTS_AUTO_POST: bool = False
    INSIGHTS_MIN_SEVERITY: str = "high"
    INSIGHTS_MAX_POSTS: int = 1
    POST_SPACING_SECONDS: float = 30.0

    # APIs
    ANTHROPIC_API_KEY: str = ""
    CONTENT_MODEL: str = "claude-sonnet-4-20250514"
    CONTENT_TEMPERATURE: float = 0.85
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""

    # Application
    LOG_LEVEL: str = "INFO"
    METRICS_DIR: str = "data"
    ENVIRONMENT: str = "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator(
        "RPC_BLOCK_RANGE", "RPC_RETRY_ATTEMPTS", "RPC_CACHE_TTL",
        "INSIGHTS_CHECK_INTERVAL", "HEALTH_CHECK_INTERVAL", "INSIGHTS_MAX_POSTS",
        mode="before",
    )
    @classmethod
    def _positive_int(cls, value, info):
        return positive_int_or_default(value, cls.model_fields[info.field_name].default)

    @field_validator(
        "RPC_RETRY_BASE_DELAY", "RPC_TIMEOUT", "LARGE_TX_THRESHOLD",
        "CONTENT_TEMPERATURE", "POST_SPACING_SECONDS",
        mode="before",
    )
    @classmethod
    def _positive_float(cls, value, info):
        return positive_float_or_default(value, cls.model_fields[info.field_name].default)

    @field_validator("INSIGHTS_SCHEDULED", "INSIGHTS_AUTO_POST", mode="before")
    @classmethod
    def _flag(cls, value, info):
        return bool_or_default(value, cls.model_fields[info.field_name].default)

    @field_validator("INSIGHTS_MIN_SEVERITY", mode="before")
    @classmethod
    def _severity(cls, value):
        text = str(value).strip().lower()
        return text if text in ("low", "medium", "high") else "high"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _log_level(cls, value):
        text = str(value).strip().upper()
        return text if text in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL") else "INFO"


settings = Settings()
