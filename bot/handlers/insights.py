"""
/insights, /gas and /health handlers — interactive access to the insight service.
"""
from telegram import Update
from telegram.ext import ContextTypes
from agents.insights.services.scheduler import ScheduledInsightsService
import structlog

logger = structlog.get_logger()

TELEGRAM_MESSAGE_LIMIT = 4096


def _service(context: ContextTypes.DEFAULT_TYPE) -> ScheduledInsightsService:
    return context.application.bot_data["insights"]


async def insights_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Run one insight check and reply with the summary."""
    await update.message.reply_text("Checking recent blocks... 🔍")
    result = await _service(context).run_insight_check()
    logger.info("insights_command", chat_id=update.effective_chat.id, success=result.success)
    await update.message.reply_text(result.text[:TELEGRAM_MESSAGE_LIMIT])


async def gas_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    gas_price = await _service(context).client.get_gas_price()
    if gas_price == "0":
        await update.message.reply_text("Gas price unavailable right now. Try again in a minute.")
        return
    gwei = float(gas_price) * 1e9
    await update.message.reply_text(f"⛽ Gas price: {gwei:.2f} gwei")


async def health_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    service = _service(context)
    await service.perform_health_check()
    state = service.health
    icon = "✅" if state.is_healthy else "⚠️"
    msg = f"{icon} RPC status: {state.status}\n"
    if state.last_block_number is not None:
        msg += f"Latest block: {state.last_block_number:,}\n"
    if state.consecutive_failures:
        msg += f"Consecutive failed probes: {state.consecutive_failures}\n"
    await update.message.reply_text(msg.strip())
