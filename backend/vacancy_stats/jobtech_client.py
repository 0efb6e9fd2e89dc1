# vacancy_stats/jobtech_client.py
# JobTech historical search: one call per month, aggregate total only.

import asyncio
import time
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from vacancy_stats.config import (
    JOBTECH_BASE_URL,
    MAX_CONCURRENT_REQUESTS,
    REQUEST_TIMEOUT,
    RESPONSE_CACHE_TTL,
    RETRY_ATTEMPTS,
    SWEDEN_COUNTRY_CODE,
    USER_AGENT,
)
from vacancy_stats.date_utils import month_to_date_range
from vacancy_stats.errors import UnknownFilterValue, UpstreamFailure
from vacancy_stats.logging_config import logger
from vacancy_stats.models import VacancyRecord
from vacancy_stats.taxonomy import Taxonomy, TaxonomyKind


def _default_headers() -> Dict[str, str]:
    return {"User-Agent": USER_AGENT, "Accept": "application/json"}


class ResponseCache:
    def __init__(self, ttl: float = RESPONSE_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[int, float]] = {}

    def get(self, key: Hashable) -> Optional[int]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        count, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return count

    def set(self, key: Hashable, count: int) -> None:
        self._entries[key] = (count, self._clock() + self.ttl)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def read_total(payload) -> int:
    """Pull ``total.value`` out of a search response; ValueError if it is not there."""
    try:
        value = payload["total"]["value"]
    except (KeyError, TypeError):
        raise ValueError("response has no total.value")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"total.value is not a non-negative integer: {value!r}")
    return value


class JobTechClient:
    def __init__(
        self,
        taxonomy: Taxonomy,
        *,
        base_url: str = JOBTECH_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = REQUEST_TIMEOUT,
        retry_attempts: int = RETRY_ATTEMPTS,
        retry_backoff: float = 0.5,
        max_concurrency: int = MAX_CONCURRENT_REQUESTS,
        cache: Optional[ResponseCache] = None,
    ):
        self.taxonomy = taxonomy
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff = retry_backoff
        self.cache = cache if cache is not None else ResponseCache()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout, headers=_default_headers())
        self._semaphore = asyncio.Semaphore(max_concurrency)

    def build_params(
        self, month: str, region: Optional[str] = None, occupation: Optional[str] = None
    ) -> Dict[str, str]:
        """Query params for one month; raises UnknownFilterValue for unknown slugs."""
        date_from, date_to = month_to_date_range(month)
        params = {
            "historical-from": date_from,
            "historical-to": date_to,
            "limit": "0",  # aggregate total only, no hits in the payload
            "offset": "0",
        }

        if region:
            code = self.taxonomy.code_of(TaxonomyKind.REGION, region)
            if code is None:
                raise UnknownFilterValue(TaxonomyKind.REGION.value, region)
            params["region"] = code
        else:
            params["country"] = SWEDEN_COUNTRY_CODE

        if occupation:
            code = self.taxonomy.code_of(TaxonomyKind.OCCUPATION, occupation)
            if code is None:
                raise UnknownFilterValue(TaxonomyKind.OCCUPATION.value, occupation)
            params["occupation-group"] = code

        return params

    async def fetch_month(
        self,
        month: str,
        region: Optional[str] = None,
        occupation: Optional[str] = None,
        use_cache: bool = True,
    ) -> VacancyRecord:
        # use_cache=False skips the lookup but still stores the fresh count
        params = self.build_params(month, region, occupation)
        cache_key = tuple(sorted(params.items()))

        cached = self.cache.get(cache_key) if use_cache else None
        if cached is not None:
            return VacancyRecord(month=month, region=region, occupation=occupation, count=cached)

        try:
            async with self._semaphore:
                payload = await asyncio.wait_for(self._get_json(params), timeout=self.timeout)
            count = read_total(payload)
        except asyncio.TimeoutError:
            raise UpstreamFailure(month, region, occupation, f"timed out after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamFailure(month, region, occupation, f"HTTP {status}", status=status) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(month, region, occupation, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            # invalid JSON or a payload without a usable total
            raise UpstreamFailure(month, region, occupation, f"malformed payload: {e}") from e

        self.cache.set(cache_key, count)
        logger.debug(f"fetch_month: {month} region={region or 'all'} occupation={occupation or 'all'} -> {count}")
        return VacancyRecord(month=month, region=region, occupation=occupation, count=count)

    async def fetch_months(
        self,
        months: Iterable[str],
        region: Optional[str] = None,
        occupation: Optional[str] = None,
        use_cache: bool = True,
    ) -> List[VacancyRecord]:
        return list(
            await asyncio.gather(
                *(self.fetch_month(m, region, occupation, use_cache=use_cache) for m in months)
            )
        )

    async def _get_json(self, params: Dict[str, str]):
        url = f"{self.base_url}/search"
        # Only network-level errors are retried; HTTP status errors are final.
        async for attempt in AsyncRetrying(
            wait=wait_exponential(multiplier=self.retry_backoff, max=4),
            stop=stop_after_attempt(self.retry_attempts),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                resp = await self._client.get(url, params=params)
                resp.raise_for_status()
                return resp.json()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
