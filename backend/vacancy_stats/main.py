import time
from dataclasses import asdict
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request

from vacancy_stats.aggregator import VacancyAggregator, should_fetch_all_regions
from vacancy_stats.cutoff import CutoffCache
from vacancy_stats.date_utils import resolve_date_range
from vacancy_stats.errors import UnknownFilterValue
from vacancy_stats.jobtech_client import JobTechClient
from vacancy_stats.logging_config import logger
from vacancy_stats.taxonomy import Taxonomy, TaxonomyKind, parse_filters
from vacancy_stats.transformers import (
    summary_stats,
    to_area_chart,
    to_map_chart,
    to_pie_chart,
)

DATA_UNAVAILABLE = "Could not load data, try again later."


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: one taxonomy, one upstream client and one cutoff cache per process
    taxonomy = Taxonomy()
    client = JobTechClient(taxonomy)
    cutoff_cache = CutoffCache(client)
    app.state.taxonomy = taxonomy
    app.state.aggregator = VacancyAggregator(client, cutoff_cache, taxonomy)
    logger.info(f"Backend started against {client.base_url}")
    yield
    await client.aclose()
    logger.info("Backend stopped, upstream client closed")

app = FastAPI(title="Swedish vacancy statistics", lifespan=lifespan)


def get_taxonomy(request: Request) -> Taxonomy:
    return request.app.state.taxonomy


def get_aggregator(request: Request) -> VacancyAggregator:
    return request.app.state.aggregator


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/taxonomy/regions")
def list_regions(taxonomy: Taxonomy = Depends(get_taxonomy)):
    return [asdict(e) for e in taxonomy.entries(TaxonomyKind.REGION)]


@app.get("/taxonomy/occupations")
def list_occupations(taxonomy: Taxonomy = Depends(get_taxonomy)):
    return [asdict(e) for e in taxonomy.entries(TaxonomyKind.OCCUPATION)]


def build_page_title(taxonomy: Taxonomy, region: Optional[str], occupation: Optional[str]) -> str:
    region_name = taxonomy.name_of(TaxonomyKind.REGION, region) if region else None
    occupation_name = taxonomy.name_of(TaxonomyKind.OCCUPATION, occupation) if occupation else None
    if region_name and occupation_name:
        return f"{occupation_name} i {region_name}"
    if region_name:
        return f"Lediga jobb i {region_name}"
    if occupation_name:
        return f"{occupation_name} i Sverige"
    return "Sveriges jobbsiffror"


@app.get("/vacancies")
@app.get("/vacancies/{filters:path}")
async def vacancies(
    filters: str = "",
    from_month: Optional[str] = Query(None, alias="fromMonth"),
    to_month: Optional[str] = Query(None, alias="toMonth"),
    legacy_from: Optional[str] = Query(None, alias="from", deprecated=True),
    legacy_to: Optional[str] = Query(None, alias="to", deprecated=True),
    aggregator: VacancyAggregator = Depends(get_aggregator),
    taxonomy: Taxonomy = Depends(get_taxonomy),
):
    """
    Dashboard payload for one filter combination.

    Path segments select region and/or occupation (see parse_filters). Any
    hard failure returns 503 with no partial data; months that failed on
    their own show up as zeros.
    """
    parsed = parse_filters(filters.split("/"), taxonomy)
    if parsed.invalid:
        logger.warning(f"/vacancies: invalid filters '{filters}'")
        raise HTTPException(status_code=404, detail=f"Unknown filter: {filters}")

    region, occupation = parsed.region, parsed.occupation
    date_from, date_to = resolve_date_range(from_month, to_month, legacy_from, legacy_to)
    logger.info(
        f"/vacancies called | region={region or 'all'} | occupation={occupation or 'all'} "
        f"| range={date_from}..{date_to}"
    )

    start = time.time()
    try:
        report = await aggregator.aggregate_with_report(date_from, date_to, region, occupation)
        if should_fetch_all_regions(region):
            map_records = await aggregator.aggregate_all_regions(date_from, date_to, occupation)
        else:
            map_records = report.records
    except UnknownFilterValue as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception(f"/vacancies: failed to load data for '{filters}'")
        raise HTTPException(status_code=503, detail=DATA_UNAVAILABLE)

    stats = summary_stats(report.records)
    if not region:
        stats["most_active_region"] = summary_stats(map_records)["most_active_region"]
    pie_source, pie_kind = (
        (report.records, TaxonomyKind.OCCUPATION) if region else (map_records, TaxonomyKind.REGION)
    )

    logger.info(f"/vacancies: {len(report.records)} months served in {time.time() - start:.3f} sec")
    return {
        "title": build_page_title(taxonomy, region, occupation),
        "region": region,
        "occupation": occupation,
        "date_from": date_from,
        "date_to": date_to,
        "filter": report.filter_result.to_dict(),
        "records": [r.to_dict() for r in report.records],
        "area_chart": to_area_chart(report.records),
        "pie_chart": to_pie_chart(pie_source, pie_kind),
        "summary": stats,
        "map": to_map_chart(map_records, taxonomy),
    }


@app.get("/cutoff")
async def cutoff_status(aggregator: VacancyAggregator = Depends(get_aggregator)):
    cutoff = await aggregator.get_cached_cutoff_date()
    return {"cutoff_month": cutoff, **aggregator.cutoff_cache.status()}


@app.post("/cutoff/refresh")
def refresh_cutoff(aggregator: VacancyAggregator = Depends(get_aggregator)):
    """Drop the cached cutoff; the next request re-detects it."""
    aggregator.invalidate_cutoff_cache()
    return {"status": "invalidated"}
