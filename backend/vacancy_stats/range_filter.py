# Only the upper bound of a range moves; there is no lower-bound cutoff.

from typing import List, Optional

from vacancy_stats.date_utils import (
    add_months,
    end_of_month_instant,
    format_month,
    month_of,
    months_between,
    months_in_range,
    parse_instant,
    parse_month,
)
from vacancy_stats.cutoff import CutoffCache, is_month_within_data_range
from vacancy_stats.logging_config import logger
from vacancy_stats.models import DateRangeValidation, FilterResult


def dropped_months_after(cutoff_month: str, date_to: str) -> List[str]:
    """Months after `cutoff_month` up to and including the month of `date_to`."""
    first_dropped = format_month(*add_months(*parse_month(cutoff_month), 1))
    last_requested = month_of(parse_instant(date_to))
    if last_requested < first_dropped:
        return []
    return months_between(first_dropped, last_requested)


def clip_date_range(date_from: str, date_to: str, cutoff_month: Optional[str]) -> FilterResult:
    """
    Pull `date_to` back to the end of `cutoff_month` when it reaches past it.

    The result may be degenerate (adjusted_to before date_from) when the whole
    request lies after the cutoff; expanding it to months then yields nothing.
    """
    unchanged = FilterResult(adjusted_from=date_from, adjusted_to=date_to)
    if not cutoff_month:
        return unchanged

    try:
        cutoff_end = end_of_month_instant(cutoff_month)
        if parse_instant(date_to) <= parse_instant(cutoff_end):
            return unchanged
        dropped = dropped_months_after(cutoff_month, date_to)
    except (TypeError, ValueError) as e:
        logger.error(f"clip_date_range: cannot clip {date_from!r}..{date_to!r} to {cutoff_month!r}: {e}")
        return unchanged

    return FilterResult(
        adjusted_from=date_from,
        adjusted_to=cutoff_end,
        was_clipped=True,
        dropped_months=dropped,
    )


class DateRangeFilter:

    def __init__(self, cutoff_cache: CutoffCache):
        self.cutoff_cache = cutoff_cache

    async def filter(self, date_from: str, date_to: str) -> FilterResult:
        cutoff = await self.cutoff_cache.get()
        result = clip_date_range(date_from, date_to, cutoff)
        if result.was_clipped:
            logger.info(
                f"Clipped range {date_from}..{date_to} to cutoff {cutoff}, "
                f"dropped months: {', '.join(result.dropped_months)}"
            )
        return result

    async def is_month_available(self, month: str) -> bool:
        cutoff = await self.cutoff_cache.get()
        if not cutoff:
            return True
        return is_month_within_data_range(month, cutoff)

    async def max_available_date(self) -> Optional[str]:
        cutoff = await self.cutoff_cache.get()
        return end_of_month_instant(cutoff) if cutoff else None

    async def validate_date_range(self, date_from: str, date_to: str) -> DateRangeValidation:
        max_date = await self.max_available_date()
        if not max_date:
            return DateRangeValidation(is_valid=True, exceeds_available_data=False, max_available_date=None)

        try:
            exceeds = parse_instant(date_to) > parse_instant(max_date)
        except ValueError as e:
            return DateRangeValidation(
                is_valid=False,
                exceeds_available_data=False,
                max_available_date=max_date,
                message=f"Invalid date range: {e}",
            )
        return DateRangeValidation(
            is_valid=not exceeds,
            exceeds_available_data=exceeds,
            max_available_date=max_date,
            message=f"Requested end date exceeds available data. Data available until {max_date}"
            if exceeds
            else None,
        )

    async def available_months_in_range(self, date_from: str, date_to: str) -> List[str]:
        cutoff = await self.cutoff_cache.get()
        months = months_in_range(date_from, date_to)
        if not cutoff:
            return months
        return [m for m in months if is_month_within_data_range(m, cutoff)]
