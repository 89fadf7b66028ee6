# transit_checkin/utils/text.py
"""Small string and date helpers shared by the roster, trips and check-in."""

import unicodedata
from datetime import date, datetime
from typing import Optional, Union


def normalize_text(value) -> str:
    """Trim, case-fold and strip diacritics so 'José' matches 'jose'."""
    text = unicodedata.normalize("NFKD", str(value or "").strip())
    return "".join(ch for ch in text if not unicodedata.combining(ch)).casefold()


def normalize_code(value) -> str:
    return str(value or "").strip().upper()


def day_key(when: Optional[Union[datetime, date]] = None) -> str:
    """Local calendar date as YYYY-MM-DD (local wall clock, not UTC)."""
    when = when or datetime.now()
    return when.strftime("%Y-%m-%d")


def parse_day_key(value: str) -> str:
    """Validate a YYYY-MM-DD key. Raises ValueError when malformed."""
    return datetime.strptime(value, "%Y-%m-%d").strftime("%Y-%m-%d")
