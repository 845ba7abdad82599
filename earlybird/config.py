from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from earlybird.domain import CalendarDate, ConfigError

DEFAULT_LOGIN_URL = "https://ais.usvisa-info.com/en-ca/niv/users/sign_in"

_REQUIRED = ("EMAIL", "PASSWORD", "LOGIN_URL", "REGISTERED_DATE")
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    email: str
    password: str
    registered_date: CalendarDate
    login_url: str = DEFAULT_LOGIN_URL

    # Base minutes between attempts; the actual wait is jittered by +-1 minute.
    retry_interval_minutes: float = 10.0
    run_in_background: bool = False

    has_multiple_applicants: bool = False
    language: str = "en"

    # Upper bound for "next month" clicks while looking for a selectable day.
    max_calendar_pages: int = 24

    alarm_file: str = "alarm.mp3"

    # Optional: Telegram alert next to the audible alarm.
    telegram_bot_token: str | None = None
    telegram_chat_ids: tuple[str, ...] = ()


def _parse_bool(raw: str | None) -> bool:
    return (raw or "").strip().lower() in _TRUE_VALUES


def _parse_registered_date(raw: str) -> CalendarDate:
    # Accepts "2025-06-30" as well as "2025-06-30T09:15"; the time part is dropped.
    value = raw.strip()
    try:
        parsed = dt.datetime.fromisoformat(value)
    except ValueError:
        try:
            parsed = dt.datetime.strptime(value[:10], "%Y-%m-%d")
        except ValueError as e:
            raise ConfigError(f"Invalid REGISTERED_DATE value: {raw!r}. Expected YYYY-MM-DD.") from e
    return CalendarDate.from_date(parsed.date())


def _parse_positive_number(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid {name} value: {raw!r}. Expected a number.") from e
    if value <= 0:
        raise ConfigError(f"{name} must be > 0")
    return value


def _parse_telegram_chat_ids(raw: str) -> tuple[str, ...]:
    # TELEGRAM_CHAT_ID supports a single value or a comma-separated list;
    # group chats have negative ids.
    seen: set[str] = set()
    result: list[str] = []
    for part in raw.split(","):
        chat_id = part.strip()
        if not chat_id:
            continue
        try:
            int(chat_id)
        except ValueError as e:
            raise ConfigError(f"Invalid TELEGRAM_CHAT_ID value: {chat_id!r}. Expected integer chat id.") from e
        if chat_id == "0":
            raise ConfigError("Invalid TELEGRAM_CHAT_ID value: '0' is not a valid chat id")
        if chat_id not in seen:
            seen.add(chat_id)
            result.append(chat_id)
    return tuple(result)


def load_settings(dotenv_path: str | None = None) -> Settings:
    # Real environment wins over .env; dotenv_path allows overriding in tests.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    env = {name: (os.getenv(name) or "").strip() for name in _REQUIRED}
    # Passwords may start or end with spaces, so PASSWORD is kept unstripped.
    env["PASSWORD"] = os.getenv("PASSWORD") or ""
    if not env["LOGIN_URL"]:
        env["LOGIN_URL"] = DEFAULT_LOGIN_URL

    missing = [name for name in _REQUIRED if not env[name]]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    retry_interval = _parse_positive_number("RETRY_INTERVAL", os.getenv("RETRY_INTERVAL", "10"))

    max_pages_raw = os.getenv("MAX_CALENDAR_PAGES", "24")
    try:
        max_calendar_pages = int(max_pages_raw)
    except ValueError as e:
        raise ConfigError(f"Invalid MAX_CALENDAR_PAGES value: {max_pages_raw!r}. Expected integer.") from e
    if max_calendar_pages < 1:
        raise ConfigError("MAX_CALENDAR_PAGES must be >= 1")

    telegram_bot_token = os.getenv("TELEGRAM_BOT_TOKEN") or None
    telegram_chat_ids = _parse_telegram_chat_ids(os.getenv("TELEGRAM_CHAT_ID", ""))
    if telegram_bot_token and not telegram_chat_ids:
        raise ConfigError("TELEGRAM_CHAT_ID is empty. Provide at least one chat id or unset TELEGRAM_BOT_TOKEN.")

    return Settings(
        email=env["EMAIL"],
        password=env["PASSWORD"],
        registered_date=_parse_registered_date(env["REGISTERED_DATE"]),
        login_url=env["LOGIN_URL"],
        retry_interval_minutes=retry_interval,
        run_in_background=_parse_bool(os.getenv("RUN_IN_BACKGROUND")),
        has_multiple_applicants=_parse_bool(os.getenv("HAS_MULTIPLE_APPLICANTS")),
        language=(os.getenv("LANGUAGE") or "en").strip(),
        max_calendar_pages=max_calendar_pages,
        alarm_file=os.getenv("ALARM_FILE") or "alarm.mp3",
        telegram_bot_token=telegram_bot_token,
        telegram_chat_ids=telegram_chat_ids,
    )
