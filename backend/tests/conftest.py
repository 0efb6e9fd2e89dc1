import asyncio
import os
import tempfile

# keep test runs from writing into backend/logs
os.environ.setdefault("VACANCY_STATS_LOG_DIR", tempfile.mkdtemp(prefix="vacancy_stats_logs_"))

import httpx
import pytest

from vacancy_stats.errors import UpstreamFailure
from vacancy_stats.jobtech_client import JobTechClient
from vacancy_stats.models import VacancyRecord
from vacancy_stats.taxonomy import Taxonomy


class FakeFetcher:
    """
    Stands in for JobTechClient.

    counts:  {month: n} or {(month, region): n}; anything else gets `default`
    failing: months or (month, region) pairs that raise UpstreamFailure
    delays:  {month: seconds} to shuffle completion order
    """

    def __init__(self, counts=None, failing=(), delays=None, default=100):
        self.counts = counts or {}
        self.failing = set(failing)
        self.delays = delays or {}
        self.default = default
        self.calls = []
        self.finished = []
        self.batches = 0
        self.batch_use_cache = []

    async def fetch_month(self, month, region=None, occupation=None, use_cache=True):
        self.calls.append((month, region, occupation))
        delay = self.delays.get(month, 0)
        if delay:
            await asyncio.sleep(delay)
        if month in self.failing or (month, region) in self.failing:
            raise UpstreamFailure(month, region, occupation, "HTTP 502", status=502)
        self.finished.append((month, region, occupation))
        count = self.counts.get((month, region), self.counts.get(month, self.default))
        return VacancyRecord(month=month, region=region, occupation=occupation, count=count)

    async def fetch_months(self, months, region=None, occupation=None, use_cache=True):
        self.batches += 1
        self.batch_use_cache.append(use_cache)
        return list(await asyncio.gather(*(self.fetch_month(m, region, occupation) for m in months)))


class StaticCutoff:
    """Cutoff cache double with a fixed value."""

    def __init__(self, cutoff=None):
        self.cutoff = cutoff
        self.invalidated = 0

    async def get(self):
        return self.cutoff

    def invalidate(self):
        self.invalidated += 1

    def status(self):
        return {"cached_value": self.cutoff}


@pytest.fixture
def taxonomy():
    return Taxonomy()


@pytest.fixture
def make_client(taxonomy):
    """Build a JobTechClient whose HTTP traffic goes to `handler`."""
    clients = []

    def _make(handler, **kwargs):
        kwargs.setdefault("retry_attempts", 1)
        kwargs.setdefault("retry_backoff", 0)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = JobTechClient(
            taxonomy, base_url="https://jobtech.test", http_client=http_client, **kwargs
        )
        clients.append(client)
        return client

    return _make


def search_response(total):
    return httpx.Response(
        200,
        json={
            "total": {"value": total},
            "positions": 0,
            "query_time_in_millis": 3,
            "result_time_in_millis": 4,
            "hits": [],
        },
    )
