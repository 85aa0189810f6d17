"""``dd-mmm-yyyy`` date handling for INCREMENT expiry fields."""

from __future__ import annotations

import re
from datetime import date
from typing import Final

from flexlm_options.constants import PERPETUAL_EXPIRY_REPLACEMENT, PERPETUAL_EXPIRY_TOKEN

_MONTHS: Final[dict[str, int]] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_DATE_RE: Final[re.Pattern[str]] = re.compile(r"^(\d{1,2})-([A-Za-z]{3})-(\d{4})$")


def parse_dd_mmm_yyyy(value: object) -> date | None:
    """Parse ``15-jan-2025`` (month case-insensitive); ``None`` for anything invalid.

    Year ``0000`` has no ``datetime.date`` representation and also yields
    ``None``; callers that accept the perpetual marker go through
    ``parse_expiry`` instead.
    """

    if not isinstance(value, str):
        return None
    match = _DATE_RE.fullmatch(value.strip())
    if match is None:
        return None
    month = _MONTHS.get(match.group(2).lower())
    if month is None:
        return None
    try:
        return date(int(match.group(3)), month, int(match.group(1)))
    except ValueError:
        return None


def parse_expiry(value: str) -> date | None:
    """Parse an INCREMENT expiry, mapping the perpetual marker to ``01-jan-2999``."""

    if value.strip().lower() == PERPETUAL_EXPIRY_TOKEN:
        value = PERPETUAL_EXPIRY_REPLACEMENT
    return parse_dd_mmm_yyyy(value)


def format_dd_mmm_yyyy(value: date) -> str:
    """Inverse of ``parse_dd_mmm_yyyy`` using lowercase month abbreviations."""

    month = next(name for name, number in _MONTHS.items() if number == value.month)
    return f"{value.day:02d}-{month}-{value.year:04d}"


__all__ = ["format_dd_mmm_yyyy", "parse_dd_mmm_yyyy", "parse_expiry"]
