# Months are "YYYY-MM" strings, instants "YYYY-MM-DDTHH:MM:SS" (upstream format).

import calendar
import re
from datetime import date, datetime
from typing import List, Optional, Tuple

from vacancy_stats.config import DEFAULT_RANGE_MONTHS
from vacancy_stats.logging_config import logger

INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%S"
MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")

SWEDISH_MONTH_ABBR = [
    "jan", "feb", "mar", "apr", "maj", "jun",
    "jul", "aug", "sep", "okt", "nov", "dec",
]


def parse_month(month: str) -> Tuple[int, int]:
    """Return (year, month) for a "YYYY-MM" string; ValueError otherwise."""
    match = MONTH_RE.match(month or "")
    if not match:
        raise ValueError(f"Invalid month {month!r}, expected YYYY-MM")
    year, mon = int(match.group(1)), int(match.group(2))
    if not 1 <= mon <= 12:
        raise ValueError(f"Invalid month {month!r}, month out of range")
    return year, mon


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_to_date_range(month: str) -> Tuple[str, str]:
    """
    "2024-02" -> ("2024-02-01T00:00:00", "2024-02-29T23:59:59")
    """
    year, mon = parse_month(month)
    last_day = calendar.monthrange(year, mon)[1]
    start = datetime(year, mon, 1, 0, 0, 0)
    end = datetime(year, mon, last_day, 23, 59, 59)
    return start.strftime(INSTANT_FORMAT), end.strftime(INSTANT_FORMAT)


def end_of_month_instant(month: str) -> str:
    return month_to_date_range(month)[1]


def parse_instant(value: str) -> datetime:
    """Parse an ISO date or instant. Timezone info, if any, is dropped."""
    if not value:
        raise ValueError("Empty date value")
    value = value.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11 on
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    return parsed.replace(tzinfo=None)


def month_of(value: datetime) -> str:
    return format_month(value.year, value.month)


def months_between(first_month: str, last_month: str) -> List[str]:
    year, mon = parse_month(first_month)
    end = parse_month(last_month)
    months = []
    while (year, mon) <= end:
        months.append(format_month(year, mon))
        year, mon = add_months(year, mon, 1)
    return months


def months_in_range(date_from: str, date_to: str) -> List[str]:
    """Every month touched by [date_from, date_to]; [] for bad or reversed input."""
    try:
        start = parse_instant(date_from)
        end = parse_instant(date_to)
    except (TypeError, ValueError) as e:
        logger.warning(f"months_in_range: cannot parse range {date_from!r}..{date_to!r}: {e}")
        return []
    if end < start:
        return []
    return months_between(month_of(start), month_of(end))


def trailing_months(count: int, today: Optional[date] = None) -> List[str]:
    """The `count` most recent months, ending with today's month, ascending."""
    today = today or date.today()
    return [
        format_month(*add_months(today.year, today.month, -offset))
        for offset in range(count - 1, -1, -1)
    ]


def _months_ago(today: date, months: int) -> date:
    year, mon = add_months(today.year, today.month, -months)
    day = min(today.day, calendar.monthrange(year, mon)[1])
    return date(year, mon, day)


def default_from_date(today: Optional[date] = None) -> str:
    start = _months_ago(today or date.today(), DEFAULT_RANGE_MONTHS)
    return f"{start.isoformat()}T00:00:00"


def default_to_date(today: Optional[date] = None) -> str:
    return f"{(today or date.today()).isoformat()}T23:59:59"


def format_month_for_display(month: str) -> str:
    """ "2024-01" -> "jan 2024" """
    year, mon = parse_month(month)
    return f"{SWEDISH_MONTH_ABBR[mon - 1]} {year}"


def resolve_date_range(
    from_month: Optional[str] = None,
    to_month: Optional[str] = None,
    legacy_from: Optional[str] = None,
    legacy_to: Optional[str] = None,
    today: Optional[date] = None,
) -> Tuple[str, str]:
    """
    Work out the [from, to] instants for a dashboard request.

    The month-based parameters win. The older day-based ``from``/``to`` pair
    is still accepted but only mapped onto whole days. Anything missing or
    malformed falls back to the last 12 months.
    """
    if from_month and to_month:
        try:
            return month_to_date_range(from_month)[0], month_to_date_range(to_month)[1]
        except ValueError as e:
            logger.warning(f"resolve_date_range: ignoring month range: {e}")

    if legacy_from and legacy_to:
        logger.info("resolve_date_range: day-based from/to parameters are deprecated")
        try:
            start = parse_instant(legacy_from).date()
            end = parse_instant(legacy_to).date()
            return f"{start.isoformat()}T00:00:00", f"{end.isoformat()}T23:59:59"
        except ValueError as e:
            logger.warning(f"resolve_date_range: ignoring day range: {e}")

    return default_from_date(today), default_to_date(today)
