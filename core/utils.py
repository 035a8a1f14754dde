"""
Utility functions shared by every extractor.

Provides helper functions for:
- Currency amount parsing ("1,234.50", "Ksh.1,234.50")
- M-Pesa date/time parsing (D/M/YY[YY] plus 12-hour clock)
- Statement date codes (YYYYMMDD)
- Deterministic ID generation
- Currency formatting
"""
from __future__ import annotations
import hashlib
import re
from datetime import datetime
from typing import Optional, Union

from core.logger import get_logger

log = get_logger("core/utils")

_NON_NUMERIC_RE = re.compile(r"[^\d.]")
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")
_DATE_CODE_RE = re.compile(r"^\d{8}$")


def parse_amount(value: Union[str, int, float, None]) -> Optional[float]:
    """
    Parse a currency token into a float.

    Commas and currency markers are stripped before parsing. A token that
    still fails to parse is a malformed numeric: it is logged and reported
    as None so the caller can apply its own field default.

    Args:
        value: Raw amount token (e.g. "1,234.50", "Ksh.500", 250)

    Returns:
        float or None if the token is not numeric

    Examples:
        >>> parse_amount("1,234.50")
        1234.5
        >>> parse_amount("Ksh10,000.00.")
        10000.0
        >>> parse_amount("n/a") is None
        True
    """
    if value is None:
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    cleaned = _NON_NUMERIC_RE.sub("", str(value).replace(",", ""))
    # Sentence-ending periods ride along with the last token in SMS text
    cleaned = cleaned.strip(".")

    if not cleaned:
        log.debug(f"Malformed numeric token: {value!r}")
        return None

    try:
        return float(cleaned)
    except ValueError:
        log.debug(f"Malformed numeric token: {value!r}")
        return None


def parse_sms_datetime(date_str: Optional[str], time_str: Optional[str] = None) -> Optional[datetime]:
    """
    Parse an M-Pesa day/month/year date and 12-hour clock time.

    A PM hour of 12 stays 12 and an AM hour of 12 becomes 0. Two-digit
    years are taken as 20YY.

    Args:
        date_str: Date in D/M/YY or D/M/YYYY form
        time_str: Optional time such as "2:30 PM"

    Returns:
        datetime or None if the date is missing or not a real calendar date

    Examples:
        >>> parse_sms_datetime("5/6/24", "2:30 PM")
        datetime.datetime(2024, 6, 5, 14, 30)
        >>> parse_sms_datetime("1/1/2024", "12:05 AM")
        datetime.datetime(2024, 1, 1, 0, 5)
    """
    if not date_str:
        return None

    parts = date_str.strip().split("/")
    if len(parts) != 3:
        return None

    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return None

    if year < 100:
        year += 2000

    hours = 0
    minutes = 0
    if time_str:
        is_pm = "pm" in time_str.lower()
        match = _TIME_RE.search(time_str)
        if match:
            hours = int(match.group(1))
            minutes = int(match.group(2))
            if is_pm and hours < 12:
                hours += 12
            if not is_pm and hours == 12:
                hours = 0

    try:
        return datetime(year, month, day, hours, minutes)
    except ValueError as e:
        log.debug(f"Invalid SMS date/time: date={date_str!r} time={time_str!r} error={e}")
        return None


def parse_date_code(code: str) -> Optional[datetime]:
    """
    Parse a YYYYMMDD date code used by combined statements.

    Returns:
        datetime at midnight or None for a malformed or impossible date
    """
    if not code or not _DATE_CODE_RE.match(code):
        return None

    try:
        return datetime(int(code[0:4]), int(code[4:6]), int(code[6:8]))
    except ValueError:
        log.debug(f"Invalid date code: {code!r}")
        return None


def make_id(*parts: str) -> str:
    """
    Generate a deterministic ID from multiple string parts.

    Creates a consistent 32-character hexadecimal ID by:
    1. Joining all parts with "||" delimiter
    2. Computing SHA-256 hash
    3. Taking first 32 characters

    Args:
        *parts: Variable number of string parts to combine

    Returns:
        str: 32-character hexadecimal ID

    Raises:
        TypeError: If any part is not a string
    """
    for i, part in enumerate(parts):
        if not isinstance(part, str):
            error_msg = f"Part {i} is not a string: {type(part)}"
            log.error(error_msg)
            raise TypeError(error_msg)

    joined = "||".join(parts)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:32]


def format_currency(amount: Union[int, float], currency: str | None = None) -> str:
    """
    Format an amount with the appropriate currency symbol or code.

    Falls back to KES when no currency is given.

    Examples:
        >>> format_currency(1234.5)
        "KSh1,234.50"
        >>> format_currency(1234.5, "USD")
        "$1,234.50"
    """
    CURRENCY_SYMBOLS = {
        "KES": "KSh",
        "UGX": "USh",
        "TZS": "TSh",
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
    }

    currency_code = (currency or "KES").upper().strip()
    symbol = CURRENCY_SYMBOLS.get(currency_code, currency_code)
    return f"{symbol}{amount:,.2f}"
