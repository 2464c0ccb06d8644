import httpx

TELEGRAM_API = "https://api.telegram.org/bot{token}"


async def send_alert(token: str, chat_id: int | str, message: str, parse_mode: str | None = None):
    """Send a message to a specific Telegram chat."""
    payload = {"chat_id": chat_id, "text": message, "disable_web_page_preview": True}
    if parse_mode:
        payload["parse_mode"] = parse_mode
    async with httpx.AsyncClient(timeout=15) as client:
        resp = await client.post(f"{TELEGRAM_API.format(token=token)}/sendMessage", json=payload)
        resp.raise_for_status()
        return resp.json()
