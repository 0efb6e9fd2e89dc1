from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from vacancy_stats.date_utils import format_month_for_display
from vacancy_stats.models import VacancyRecord
from vacancy_stats.taxonomy import Taxonomy, TaxonomyKind

PIE_COLORS = ["#1f4e9c", "#2f6fd1", "#5b8fe0", "#8fb3ec", "#c3d6f6"]


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def _dimension(record: VacancyRecord, kind: TaxonomyKind) -> Optional[str]:
    return record.region if kind == TaxonomyKind.REGION else record.occupation


def to_area_chart(records: Iterable[VacancyRecord]) -> List[dict]:
    return [
        {
            "month": r.month,
            "total": r.count,
            "display_month": format_month_for_display(r.month),
        }
        for r in sorted(records, key=lambda r: r.month)
    ]


def to_bar_chart(records: Iterable[VacancyRecord], kind: TaxonomyKind, limit: int = 10) -> List[dict]:
    """Top `limit` categories of one dimension; unfiltered ("all") rows are skipped."""
    totals: Dict[str, int] = defaultdict(int)
    for record in records:
        key = _dimension(record, kind)
        if not key:
            continue
        totals[key] += record.count

    bars = [
        {"category": key, "count": count, "display_name": _capitalize_first(key)}
        for key, count in totals.items()
    ]
    bars.sort(key=lambda b: b["count"], reverse=True)
    return bars[:limit]


def to_pie_chart(records: Iterable[VacancyRecord], kind: TaxonomyKind) -> List[dict]:
    return [
        {**bar, "fill": PIE_COLORS[i % len(PIE_COLORS)]}
        for i, bar in enumerate(to_bar_chart(records, kind, limit=5))
    ]


def _most_active(counts: Dict[str, int]) -> str:
    best, best_count = "", 0
    for key, count in counts.items():
        if count > best_count:
            best, best_count = key, count
    return _capitalize_first(best)


def summary_stats(records: Iterable[VacancyRecord]) -> dict:
    records = list(records)
    monthly: Dict[str, int] = defaultdict(int)
    regions: Dict[str, int] = defaultdict(int)
    occupations: Dict[str, int] = defaultdict(int)
    for r in records:
        monthly[r.month] += r.count
        if r.region:
            regions[r.region] += r.count
        if r.occupation:
            occupations[r.occupation] += r.count

    months = sorted(monthly)
    change = 0.0
    if len(months) >= 2 and monthly[months[-2]]:
        latest, previous = monthly[months[-1]], monthly[months[-2]]
        change = (latest - previous) / previous * 100

    return {
        "total_vacancies": sum(r.count for r in records),
        "month_over_month_change": round(change, 1),
        "most_active_region": _most_active(regions),
        "most_active_occupation": _most_active(occupations),
        "latest_month": months[-1] if months else None,
    }


def aggregate_regional_data(records: Iterable[VacancyRecord]) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for r in records:
        if r.region:
            totals[r.region] += r.count
    return dict(totals)


def color_intensity(count: int, max_count: int, min_count: int) -> float:
    """Linear 0..1 scale between the quietest and the busiest region."""
    if count == 0:
        return 0.0
    if max_count == min_count:
        return 0.5
    intensity = (count - min_count) / (max_count - min_count)
    return max(0.0, min(1.0, intensity))


def to_map_chart(records: Iterable[VacancyRecord], taxonomy: Taxonomy) -> List[dict]:
    """One row per county, including counties with no records (count 0)."""
    totals = aggregate_regional_data(records)
    counts = list(totals.values())
    max_count = max(counts + [1])
    min_count = min(counts) if counts else 0

    rows = []
    for entry in taxonomy.entries(TaxonomyKind.REGION):
        count = totals.get(entry.slug, 0)
        rows.append({
            "region_code": entry.code,
            "region_name": entry.name,
            "url_slug": entry.slug,
            "job_count": count,
            "intensity": color_intensity(count, max_count, min_count),
        })
    return rows
