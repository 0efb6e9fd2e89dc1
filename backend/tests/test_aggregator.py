import asyncio
from datetime import date

import pytest

from conftest import FakeFetcher, StaticCutoff, search_response
from vacancy_stats.aggregator import VacancyAggregator, should_fetch_all_regions
from vacancy_stats.cutoff import CutoffCache
from vacancy_stats.errors import UnknownFilterValue, UpstreamFailure

JAN = "2024-01-01T00:00:00"
MAR_END = "2024-03-31T23:59:59"
DEC_END = "2024-12-31T23:59:59"


@pytest.fixture
def build(taxonomy):
    def _build(fetcher, cutoff=None):
        return VacancyAggregator(fetcher, StaticCutoff(cutoff), taxonomy)

    return _build


async def test_one_record_per_month_spanned(build):
    fetcher = FakeFetcher(default=250)
    aggregator = build(fetcher)

    records = await aggregator.aggregate(JAN, DEC_END)

    assert [r.month for r in records] == [f"2024-{m:02d}" for m in range(1, 13)]
    assert len(fetcher.calls) == 12
    assert all(r.count == 250 and r.region is None and r.occupation is None for r in records)


async def test_filters_are_passed_through(build):
    fetcher = FakeFetcher()
    records = await build(fetcher).aggregate(JAN, MAR_END, "skane", "grundskollarare")

    assert {(m, r, o) for m, r, o in fetcher.calls} == {
        ("2024-01", "skane", "grundskollarare"),
        ("2024-02", "skane", "grundskollarare"),
        ("2024-03", "skane", "grundskollarare"),
    }
    assert records[0].to_dict()["region"] == "skane"


async def test_output_sorted_regardless_of_completion_order(build):
    # earlier months finish last
    delays = {"2024-01": 0.03, "2024-02": 0.02, "2024-03": 0.01}
    fetcher = FakeFetcher(delays=delays)

    records = await build(fetcher).aggregate(JAN, MAR_END)
    assert [r.month for r in records] == ["2024-01", "2024-02", "2024-03"]


async def test_failed_month_becomes_placeholder_with_warning(build, caplog):
    fetcher = FakeFetcher(counts={"2024-01": 10, "2024-03": 30}, failing={"2024-02"})
    aggregator = build(fetcher)

    with caplog.at_level("WARNING"):
        report = await aggregator.aggregate_with_report(JAN, MAR_END)

    assert [(r.month, r.count) for r in report.records] == [("2024-01", 10), ("2024-02", 0), ("2024-03", 30)]
    assert report.warnings == ["Failed to fetch data for 2024-02: HTTP 502"]
    batched = [r for r in caplog.records if r.levelname == "WARNING" and "2024-02" in r.getMessage()]
    assert len(batched) == 1


async def test_every_month_failing_still_returns_every_month(build):
    fetcher = FakeFetcher(failing={"2024-01", "2024-02", "2024-03"})
    report = await build(fetcher).aggregate_with_report(JAN, MAR_END)

    assert [r.count for r in report.records] == [0, 0, 0]
    assert len(report.warnings) == 3


async def test_unknown_filter_fails_before_fetching(build):
    fetcher = FakeFetcher()
    aggregator = build(fetcher)

    with pytest.raises(UnknownFilterValue):
        await aggregator.aggregate(JAN, MAR_END, region="atlantis")
    with pytest.raises(UnknownFilterValue):
        await aggregator.aggregate_all_regions(JAN, MAR_END, occupation="astronaut")
    assert fetcher.calls == []


async def test_unexpected_errors_are_not_degraded(build):
    class Broken(FakeFetcher):
        async def fetch_month(self, month, region=None, occupation=None):
            raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await build(Broken()).aggregate(JAN, MAR_END)


async def test_invalid_range_gives_empty_result(build):
    fetcher = FakeFetcher()
    aggregator = build(fetcher)

    assert await aggregator.aggregate("garbage", MAR_END) == []
    assert await aggregator.aggregate(MAR_END, JAN) == []
    assert fetcher.calls == []


async def test_range_is_clipped_to_cutoff(build):
    fetcher = FakeFetcher()
    report = await build(fetcher, cutoff="2024-10").aggregate_with_report(JAN, "2025-01-31T23:59:59")

    assert report.records[-1].month == "2024-10"
    assert len(report.records) == 10
    assert report.filter_result.dropped_months == ["2024-11", "2024-12", "2025-01"]
    assert all(month <= "2024-10" for month, _, _ in fetcher.calls)


async def test_range_entirely_after_cutoff_is_empty(build):
    fetcher = FakeFetcher()
    records = await build(fetcher, cutoff="2024-10").aggregate("2025-02-01T00:00:00", "2025-03-31T23:59:59")
    assert records == []
    assert fetcher.calls == []


async def test_repeated_calls_are_identical(build):
    aggregator = build(FakeFetcher(counts={"2024-02": 7}, delays={"2024-01": 0.01}))
    first = await aggregator.aggregate(JAN, MAR_END, "stockholms")
    second = await aggregator.aggregate(JAN, MAR_END, "stockholms")
    assert first == second


async def test_all_regions_cross_product(build, taxonomy):
    fetcher = FakeFetcher(delays={"2024-01": 0.02})
    records = await build(fetcher).aggregate_all_regions(JAN, MAR_END, "grundskollarare")

    assert len(records) == 21 * 3
    assert [r.month for r in records] == sorted(r.month for r in records)
    january = [r.region for r in records if r.month == "2024-01"]
    assert january == taxonomy.region_slugs()
    assert all(r.occupation == "grundskollarare" for r in records)


async def test_all_regions_is_atomic(build):
    fetcher = FakeFetcher(failing={("2024-02", "gotlands")})

    with pytest.raises(UpstreamFailure) as exc_info:
        await build(fetcher).aggregate_all_regions(JAN, MAR_END)
    assert exc_info.value.region == "gotlands"
    assert exc_info.value.month == "2024-02"


async def test_all_regions_is_clipped_too(build):
    fetcher = FakeFetcher()
    records = await build(fetcher, cutoff="2024-02").aggregate_all_regions(JAN, DEC_END)
    assert {r.month for r in records} == {"2024-01", "2024-02"}


async def test_cutoff_passthroughs(taxonomy):
    cutoff = StaticCutoff("2024-10")
    aggregator = VacancyAggregator(FakeFetcher(), cutoff, taxonomy)

    assert await aggregator.get_cached_cutoff_date() == "2024-10"
    aggregator.invalidate_cutoff_cache()
    assert cutoff.invalidated == 1


def test_should_fetch_all_regions():
    assert should_fetch_all_regions(None)
    assert should_fetch_all_regions("")
    assert not should_fetch_all_regions("skane")


async def test_end_to_end_against_mock_upstream(make_client, taxonomy):
    """Real client + real cutoff cache: detection fills the response cache."""
    calls = []

    def handler(request):
        calls.append(dict(request.url.params))
        month = request.url.params["historical-from"][:7]
        return search_response(3 if month > "2024-10" else 4000)

    client = make_client(handler)
    cache = CutoffCache(client, today=lambda: date(2024, 12, 15))
    aggregator = VacancyAggregator(client, cache, taxonomy)

    report = await aggregator.aggregate_with_report("2024-09-01T00:00:00", DEC_END)

    assert [(r.month, r.count) for r in report.records] == [("2024-09", 4000), ("2024-10", 4000)]
    assert report.filter_result.dropped_months == ["2024-11", "2024-12"]
    # 12 detection calls; the two dashboard months were already cached
    assert len(calls) == 12


async def test_all_regions_failure_cancels_pending_fetches(build):
    fetcher = FakeFetcher(failing={("2024-01", "gotlands")}, delays={"2024-02": 0.05, "2024-03": 0.05})

    with pytest.raises(UpstreamFailure):
        await build(fetcher).aggregate_all_regions(JAN, MAR_END)

    await asyncio.sleep(0.1)
    assert not [call for call in fetcher.finished if call[0] != "2024-01"]


async def test_slow_month_degrades_to_placeholder(make_client, taxonomy):
    async def handler(request):
        month = request.url.params["historical-from"][:7]
        if month == "2024-02":
            await asyncio.sleep(1)
        return search_response(50)

    client = make_client(handler, timeout=0.05)
    aggregator = VacancyAggregator(client, StaticCutoff(None), taxonomy)

    report = await aggregator.aggregate_with_report(JAN, MAR_END, "skane")

    assert [(r.month, r.count) for r in report.records] == [("2024-01", 50), ("2024-02", 0), ("2024-03", 50)]
    assert len(report.warnings) == 1
    assert report.warnings[0].startswith("Failed to fetch data for 2024-02: timed out")
