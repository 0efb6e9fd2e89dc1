# Beyond its coverage the upstream returns near-zero totals instead of errors.
# A genuinely quiet month at or under the threshold looks the same as "no data yet".

import asyncio
import time
from datetime import date
from typing import Callable, Iterable, Optional

from vacancy_stats.config import CUTOFF_CACHE_TTL, DETECTION_WINDOW_MONTHS, VALID_DATA_THRESHOLD
from vacancy_stats.date_utils import trailing_months
from vacancy_stats.errors import DetectionFailure, UpstreamFailure
from vacancy_stats.logging_config import logger
from vacancy_stats.models import CutoffState, VacancyRecord


def detect_cutoff(
    records: Iterable[VacancyRecord], threshold: int = VALID_DATA_THRESHOLD
) -> Optional[str]:
    """Latest month whose count exceeds `threshold`, or None."""
    ordered = sorted(
        (r for r in records if r.month and r.count is not None),
        key=lambda r: r.month,
        reverse=True,
    )
    for record in ordered:
        if record.count > threshold:
            return record.month
    return None


def is_month_within_data_range(month: str, cutoff_month: str) -> bool:
    return month <= cutoff_month


class CutoffCache:
    """
    Memoised cutoff month with a TTL and single-flight recomputation.

    ``get()`` never raises: detection errors are logged and remembered as
    "no cutoff known" for the same TTL, so a broken upstream is not hit
    again on every request.
    """

    def __init__(
        self,
        fetcher,
        *,
        ttl: float = CUTOFF_CACHE_TTL,
        window_months: int = DETECTION_WINDOW_MONTHS,
        threshold: int = VALID_DATA_THRESHOLD,
        clock: Callable[[], float] = time.time,
        today: Callable[[], date] = date.today,
    ):
        self.fetcher = fetcher
        self.ttl = ttl
        self.window_months = window_months
        self.threshold = threshold
        self._clock = clock
        self._today = today
        self._state: Optional[CutoffState] = None
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def state(self) -> Optional[CutoffState]:
        return self._state

    async def get(self) -> Optional[str]:
        state = self._state
        if state is not None and state.is_fresh(self._clock()):
            return state.cutoff_month

        if self._in_flight is None:
            self._in_flight = asyncio.ensure_future(self._refresh())
        # shield: a caller giving up must not cancel the shared detection
        return await asyncio.shield(self._in_flight)

    def invalidate(self) -> None:
        """Forget the cached value. A detection already running is left alone."""
        self._state = None
        logger.info("Data cutoff cache invalidated")

    async def _refresh(self) -> Optional[str]:
        try:
            try:
                cutoff = await self._detect()
                logger.info(f"Data cutoff detected and cached: {cutoff}")
            except Exception as e:
                logger.exception(f"Failed to detect data cutoff: {e}")
                cutoff = None
            now = self._clock()
            self._state = CutoffState(cutoff_month=cutoff, detected_at=now, expires_at=now + self.ttl)
            return cutoff
        finally:
            self._in_flight = None

    async def _detect(self) -> Optional[str]:
        months = trailing_months(self.window_months, self._today())
        try:
            # the tail of the window is exactly what changes between detections
            records = await self.fetcher.fetch_months(months, use_cache=False)
        except UpstreamFailure as e:
            raise DetectionFailure(str(e)) from e
        return detect_cutoff(records, self.threshold)

    def status(self) -> dict:
        state = self._state
        fresh = state is not None and state.is_fresh(self._clock())
        return {
            "has_cached_value": fresh and state.cutoff_month is not None,
            "cached_value": state.cutoff_month if fresh else None,
            "detected_at": state.detected_at if fresh else None,
            "expires_at": state.expires_at if fresh else None,
            "detection_in_flight": self._in_flight is not None,
            "cache_duration_seconds": self.ttl,
            "cache_duration_days": self.ttl / (3600 * 24),
            "valid_data_threshold": self.threshold,
            "window_months": self.window_months,
        }
