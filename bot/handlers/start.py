"""
/start and /help handlers — Welcome message and command list.
"""
from telegram import Update
from telegram.ext import ContextTypes

WELCOME_MSG = """
*Chain Insights* 🐋

Watches BNB Smart Chain for whale transfers, new contract deployments, and token activity spikes.

*Commands:*
/insights — Run an insight check now
/gas — Current gas price
/health — RPC endpoint status
/help — This message
"""


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(WELCOME_MSG, parse_mode="Markdown")


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(WELCOME_MSG, parse_mode="Markdown")
