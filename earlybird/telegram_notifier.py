from __future__ import annotations

import logging

import httpx

from earlybird.config import Settings
from earlybird.domain import CalendarDate

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org/bot{token}/sendMessage"


def send_telegram_message(*, bot_token: str, chat_id: str, text: str, timeout_seconds: float = 20.0) -> None:
    payload = {
        "chat_id": chat_id,
        "text": text,
        "disable_web_page_preview": True,
    }

    with httpx.Client(timeout=timeout_seconds) as client:
        response = client.post(API_URL.format(token=bot_token), json=payload)
        response.raise_for_status()
        data = response.json()
    if not data.get("ok", False):
        raise RuntimeError(f"Telegram API error: {data.get('description', data)}")


def notify_better_date(settings: Settings, found: CalendarDate) -> int:
    """Tell every configured chat about an earlier date. Returns the number delivered.

    Best-effort: the alarm is the primary alert, so delivery failures are
    only logged.
    """
    if not settings.telegram_bot_token:
        return 0

    text = (
        f"Earlier visa appointment date available: {found.iso}\n"
        f"Currently registered: {settings.registered_date.iso}\n"
        f"Sign in: {settings.login_url}"
    )

    delivered = 0
    for chat_id in settings.telegram_chat_ids:
        try:
            send_telegram_message(bot_token=settings.telegram_bot_token, chat_id=chat_id, text=text)
            delivered += 1
        except Exception as e:
            logger.warning("Failed to send telegram message to chat_id=%s (%s: %s)", chat_id, type(e).__name__, e)
    return delivered
