"""
Range aggregation over the monthly fetcher.

Two modes share one shape (clip the range, expand it to months, fan out
one upstream call per month, sort the result by month) and differ only in
how they treat a failed month:

- single-region mode keeps going: the month becomes a zero-count
  placeholder and a warning is recorded;
- all-regions mode (feeds the county map) is atomic: one failed region in
  one month fails the whole call, because a map with holes reads as data.
"""

import asyncio
from typing import Awaitable, Iterable, List, Optional

from vacancy_stats.cutoff import CutoffCache
from vacancy_stats.date_utils import months_in_range
from vacancy_stats.errors import UnknownFilterValue, UpstreamFailure
from vacancy_stats.logging_config import logger
from vacancy_stats.models import AggregationReport, VacancyRecord
from vacancy_stats.range_filter import DateRangeFilter
from vacancy_stats.taxonomy import Taxonomy, TaxonomyKind


async def gather_all_or_nothing(aws: Iterable[Awaitable]) -> list:
    """Like gather, but the first failure cancels every sibling still running."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        # collect the cancellations so nothing is left pending or unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def should_fetch_all_regions(region: Optional[str]) -> bool:
    return not region


class VacancyAggregator:
    def __init__(self, fetcher, cutoff_cache: CutoffCache, taxonomy: Taxonomy):
        self.fetcher = fetcher
        self.cutoff_cache = cutoff_cache
        self.range_filter = DateRangeFilter(cutoff_cache)
        self.taxonomy = taxonomy

    def _check_filters(self, region: Optional[str], occupation: Optional[str]) -> None:
        if region and not self.taxonomy.is_valid(TaxonomyKind.REGION, region):
            raise UnknownFilterValue(TaxonomyKind.REGION.value, region)
        if occupation and not self.taxonomy.is_valid(TaxonomyKind.OCCUPATION, occupation):
            raise UnknownFilterValue(TaxonomyKind.OCCUPATION.value, occupation)

    async def aggregate(
        self,
        date_from: str,
        date_to: str,
        region: Optional[str] = None,
        occupation: Optional[str] = None,
    ) -> List[VacancyRecord]:
        report = await self.aggregate_with_report(date_from, date_to, region, occupation)
        return report.records

    async def aggregate_with_report(
        self,
        date_from: str,
        date_to: str,
        region: Optional[str] = None,
        occupation: Optional[str] = None,
    ) -> AggregationReport:
        """
        One record per month of the (clipped) range, in month order.

        Failed months come back as count=0 placeholders; the only trace of
        the failure is the warnings list on the report (and the log).
        """
        self._check_filters(region, occupation)

        filter_result = await self.range_filter.filter(date_from, date_to)
        months = months_in_range(filter_result.adjusted_from, filter_result.adjusted_to)
        if not months:
            logger.info(f"aggregate: no months to fetch for {date_from}..{date_to}")
            return AggregationReport(records=[], warnings=[], filter_result=filter_result)

        outcomes = await asyncio.gather(
            *(self.fetcher.fetch_month(m, region, occupation) for m in months),
            return_exceptions=True,
        )

        records: List[VacancyRecord] = []
        warnings: List[str] = []
        for month, outcome in zip(months, outcomes):
            if isinstance(outcome, UpstreamFailure):
                warnings.append(f"Failed to fetch data for {month}: {outcome.cause}")
                records.append(VacancyRecord(month=month, region=region, occupation=occupation, count=0))
            elif isinstance(outcome, BaseException):
                # anything else is a bug, not a data gap
                raise outcome
            else:
                records.append(outcome)

        if warnings:
            logger.warning(
                f"aggregate: {len(warnings)} of {len(months)} months degraded to placeholders "
                f"(region={region or 'all'}, occupation={occupation or 'all'}): " + "; ".join(warnings)
            )

        records.sort(key=lambda r: r.month)
        return AggregationReport(records=records, warnings=warnings, filter_result=filter_result)

    async def aggregate_all_regions(
        self, date_from: str, date_to: str, occupation: Optional[str] = None
    ) -> List[VacancyRecord]:
        """Every county x every month. Raises UpstreamFailure if any single call fails."""
        self._check_filters(None, occupation)

        filter_result = await self.range_filter.filter(date_from, date_to)
        months = months_in_range(filter_result.adjusted_from, filter_result.adjusted_to)
        if not months:
            return []

        regions = self.taxonomy.region_slugs()
        try:
            per_month = await gather_all_or_nothing(
                self._fetch_month_all_regions(m, regions, occupation) for m in months
            )
        except UpstreamFailure as e:
            logger.error(f"aggregate_all_regions: aborting {date_from}..{date_to}: {e}")
            raise

        records = [record for month_records in per_month for record in month_records]
        # stable sort keeps the county order inside each month
        records.sort(key=lambda r: r.month)
        logger.info(
            f"aggregate_all_regions: {len(months)} months x {len(regions)} regions "
            f"(occupation={occupation or 'all'})"
        )
        return records

    async def _fetch_month_all_regions(
        self, month: str, regions: List[str], occupation: Optional[str]
    ) -> List[VacancyRecord]:
        return await gather_all_or_nothing(
            self.fetcher.fetch_month(month, region, occupation) for region in regions
        )

    async def get_cached_cutoff_date(self) -> Optional[str]:
        return await self.cutoff_cache.get()

    def invalidate_cutoff_cache(self) -> None:
        self.cutoff_cache.invalidate()
