"""
Natural-language timeframe resolution.

Patterns are tried in order; the first whose handler returns a range wins.
A handler returns None when its match does not name a real date (unknown
month word, "31 February") or falls outside the calendar ("last 1000000
days"), and resolution moves on to the next pattern.
Every range is day-bounded: start at 00:00, end at 23:59:59.999999.
"""
from __future__ import annotations
import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional, Tuple, Union

from core.config import config
from core.logger import get_logger
from intent.lexicon import MONTHS, ORDINAL_QUARTERS
from models.intent import DateRange

log = get_logger("intent/timeframe")

Today = Union[date, datetime, None]
Handler = Callable[["re.Match[str]", date], Optional[DateRange]]

_ORD = r"(?:st|nd|rd|th)?"
_YEAR = r"(?:\s+(\d{4}))?"


def _day_range(start: date, end: date) -> Optional[DateRange]:
    if start > end:
        return None
    return DateRange(start=datetime.combine(start, time.min), end=datetime.combine(end, time.max))


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _shift_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _year_or(raw: Optional[str], today: date) -> int:
    return int(raw) if raw else today.year


def _last_month(m: re.Match, today: date) -> Optional[DateRange]:
    last_of_prev = today.replace(day=1) - timedelta(days=1)
    return _day_range(last_of_prev.replace(day=1), last_of_prev)


def _this_month(m: re.Match, today: date) -> Optional[DateRange]:
    return _day_range(today.replace(day=1), today)


def _last_week(m: re.Match, today: date) -> Optional[DateRange]:
    return _day_range(today - timedelta(days=7), today)


def _this_week(m: re.Match, today: date) -> Optional[DateRange]:
    return _day_range(today - timedelta(days=today.weekday()), today)


def _yesterday(m: re.Match, today: date) -> Optional[DateRange]:
    day = today - timedelta(days=1)
    return _day_range(day, day)


def _today(m: re.Match, today: date) -> Optional[DateRange]:
    return _day_range(today, today)


def _last_n_days(m: re.Match, today: date) -> Optional[DateRange]:
    days = int(m.group(1))
    if days < 1:
        return None
    return _day_range(today - timedelta(days=days - 1), today)


def _last_n_months(m: re.Match, today: date) -> Optional[DateRange]:
    months = int(m.group(1))
    if months < 1:
        return None
    return _day_range(_shift_months(today, months), today)


def _from_day_month(m: re.Match, today: date) -> Optional[DateRange]:
    month = MONTHS.get(m.group(2).lower())
    if month is None:
        return None
    start = _safe_date(_year_or(m.group(3), today), month, int(m.group(1)))
    if start is None:
        return None
    return _day_range(start, today)


def _in_month(m: re.Match, today: date) -> Optional[DateRange]:
    month = MONTHS.get(m.group(1).lower())
    if month is None:
        return None
    year = _year_or(m.group(2), today)
    return _day_range(date(year, month, 1), _month_end(year, month))


def _quarter_range(quarter: int, year: int) -> Optional[DateRange]:
    first_month = (quarter - 1) * 3 + 1
    return _day_range(date(year, first_month, 1), _month_end(year, first_month + 2))


def _quarter(m: re.Match, today: date) -> Optional[DateRange]:
    return _quarter_range(int(m.group(1)), _year_or(m.group(2), today))


def _ordinal_quarter(m: re.Match, today: date) -> Optional[DateRange]:
    return _quarter_range(ORDINAL_QUARTERS[m.group(1).lower()], _year_or(m.group(2), today))


def _year_to_date(m: re.Match, today: date) -> Optional[DateRange]:
    return _day_range(date(today.year, 1, 1), today)


TIMEFRAME_RULES: Tuple[Tuple["re.Pattern[str]", Handler], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), handler)
    for pattern, handler in (
        (r"\blast\s+month\b", _last_month),
        (r"\bthis\s+month\b", _this_month),
        (r"\blast\s+week\b", _last_week),
        (r"\bthis\s+week\b", _this_week),
        (r"\byesterday\b", _yesterday),
        (r"\btoday\b", _today),
        (r"\blast\s+(\d+)\s+days?\b", _last_n_days),
        (r"\blast\s+(\d+)\s+months?\b", _last_n_months),
        (rf"\bsince\s+(\d{{1,2}}){_ORD}\s+([a-z]+){_YEAR}", _from_day_month),
        (rf"\bfrom\s+(\d{{1,2}}){_ORD}\s+([a-z]+){_YEAR}", _from_day_month),
        (rf"\bin\s+([a-z]+){_YEAR}", _in_month),
        (rf"\b(\d{{1,2}}){_ORD}\s+([a-z]+){_YEAR}", _from_day_month),
        (rf"\bq([1-4])\b{_YEAR}", _quarter),
        (rf"\b(first|second|third|fourth)\s+quarter\b{_YEAR}", _ordinal_quarter),
        (r"\byear\s+to\s+date\b", _year_to_date),
        (r"\bytd\b", _year_to_date),
    )
)


def default_timeframe(today: date, days: Optional[int] = None) -> DateRange:
    """Trailing window used when the question names no timeframe."""
    days = config.default_timeframe_days if days is None else days
    return _day_range(today - timedelta(days=days - 1), today)


def _as_date(today: Today) -> date:
    if today is None:
        return datetime.now().date()
    if isinstance(today, datetime):
        return today.date()
    return today


def resolve_timeframe(question: str, today: Today = None) -> DateRange:
    """
    Resolve the first timeframe phrase in a question into a date range.

    Args:
        question: Free-text question
        today: Reference day (defaults to the current date)

    Returns:
        DateRange, the trailing default window when nothing matches
    """
    ref = _as_date(today)

    for pattern, handler in TIMEFRAME_RULES:
        # finditer so that "in food ... in march" still reaches the real month
        for match in pattern.finditer(question):
            try:
                resolved = handler(match, ref)
            except (OverflowError, ValueError) as e:
                # "last 1000000 days", "q1 0000": out of the calendar's range
                log.debug(f"Timeframe phrase out of range: phrase={match.group(0)!r} error={e}")
                continue
            if resolved is not None:
                log.debug(f"Timeframe resolved: pattern={pattern.pattern!r} start={resolved.start} end={resolved.end}")
                return resolved

    log.debug(f"No timeframe in question, using trailing {config.default_timeframe_days} days")
    return default_timeframe(ref)
