import logging
import structlog
from shared.config import settings


def setup_logging(level: str | None = None, environment: str | None = None):
    """Console output while developing, one JSON object per line in production."""
    level = (level or settings.LOG_LEVEL).upper()
    environment = environment or settings.ENVIRONMENT
    numeric_level = getattr(logging, level, logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO; the RPC poller would drown the agent's own events
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    renderer = (
        structlog.processors.JSONRenderer()
        if environment == "production"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
    )
