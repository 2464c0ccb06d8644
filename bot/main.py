"""
Telegram Bot — Interactive commands for the chain insights agent.
"""
from telegram.ext import Application, ApplicationBuilder, CommandHandler
from shared.config import settings
from shared.utils.logging import setup_logging
from agents.insights.services.factory import build_service
from bot.handlers.start import start_handler, help_handler
from bot.handlers.insights import insights_handler, gas_handler, health_handler
import structlog

logger = structlog.get_logger()


async def _post_init(app: Application):
    await app.bot_data["insights"].initialize()


async def _post_shutdown(app: Application):
    await app.bot_data["insights"].stop()


def create_bot():
    """Create and configure the Telegram bot application."""
    if not settings.TELEGRAM_BOT_TOKEN:
        raise RuntimeError("TELEGRAM_BOT_TOKEN not configured")

    app = (
        ApplicationBuilder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .post_init(_post_init)
        .post_shutdown(_post_shutdown)
        .build()
    )
    app.bot_data["insights"] = build_service()

    app.add_handler(CommandHandler("start", start_handler))
    app.add_handler(CommandHandler("help", help_handler))
    app.add_handler(CommandHandler("insights", insights_handler))
    app.add_handler(CommandHandler("gas", gas_handler))
    app.add_handler(CommandHandler("health", health_handler))

    return app


def main():
    setup_logging()
    logger.info("telegram_bot_starting")
    app = create_bot()
    app.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
