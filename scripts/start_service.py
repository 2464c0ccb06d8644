"""
Service starter — reads SERVICE env var and starts the API or the Telegram bot.
"""
import os
import sys
import uvicorn

SERVICE = os.environ.get("SERVICE", "insights")
PORT = int(os.environ.get("PORT", 8002))

SERVICES = {
    "insights": "agents.insights.main:app",
    "bot": None,  # Special case: not uvicorn
}


def main():
    if SERVICE not in SERVICES:
        print(f"ERROR: Unknown service '{SERVICE}'. Options: {', '.join(SERVICES.keys())}")
        sys.exit(1)

    if SERVICE == "bot":
        print("Starting Telegram bot...")
        from bot.main import main as run_bot
        run_bot()
        return

    print(f"Starting {SERVICE} on port {PORT}...")
    uvicorn.run(
        SERVICES[SERVICE],
        host="0.0.0.0",
        port=PORT,
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
