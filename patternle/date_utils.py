"""Calendar helpers: puzzle dates are keyed by YYYY-MM-DD in the puzzle timezone."""

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from .config import settings

DATE_KEY_FORMAT = "%Y-%m-%d"


def _today(timezone: Optional[str] = None) -> date:
    return datetime.now(ZoneInfo(timezone or settings.puzzle_timezone)).date()


def parse_date_key(date_key: str) -> date:
    return datetime.strptime(date_key, DATE_KEY_FORMAT).date()


def format_date_key(day: date) -> str:
    return day.strftime(DATE_KEY_FORMAT)


def get_today_date_key(timezone: Optional[str] = None) -> str:
    """Today's date key in the puzzle timezone (not the server's)."""
    return format_date_key(_today(timezone))


def date_key_offset(days: int, start: Optional[str] = None) -> str:
    """The date key `days` away from `start` (default: today)."""
    origin = parse_date_key(start) if start else _today()
    return format_date_key(origin + timedelta(days=days))


def get_puzzle_number(date_key: str, launch_date: Optional[str] = None) -> int:
    """1-based puzzle number: days since launch plus one, never below 1."""
    launch = parse_date_key(launch_date or settings.launch_date)
    return max(1, (parse_date_key(date_key) - launch).days + 1)
