from dataclasses import dataclass, field
from typing import List, Optional

# Wire-level marker for "no filter applied"; internal code uses None
ALL = "all"


@dataclass(frozen=True)
class VacancyRecord:
    month: str  # "YYYY-MM"
    region: Optional[str]
    occupation: Optional[str]
    count: int

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "region": self.region or ALL,
            "occupation": self.occupation or ALL,
            "count": self.count,
        }


@dataclass(frozen=True)
class CutoffState:
    cutoff_month: Optional[str]  # None when detection found nothing
    detected_at: float
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class FilterResult:
    adjusted_from: str
    adjusted_to: str
    was_clipped: bool = False
    dropped_months: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "adjusted_from": self.adjusted_from,
            "adjusted_to": self.adjusted_to,
            "was_clipped": self.was_clipped,
            "dropped_months": list(self.dropped_months),
        }


@dataclass(frozen=True)
class DateRangeValidation:
    is_valid: bool
    exceeds_available_data: bool
    max_available_date: Optional[str]
    message: Optional[str] = None


@dataclass(frozen=True)
class AggregationReport:
    records: List[VacancyRecord]
    warnings: List[str]
    filter_result: FilterResult
