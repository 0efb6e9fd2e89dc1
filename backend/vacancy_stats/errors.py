from typing import Optional


class VacancyStatsError(Exception):
    pass


class UnknownFilterValue(VacancyStatsError):
    """Slug not in the taxonomy. A caller bug, never degraded to a placeholder."""

    def __init__(self, kind: str, slug: str):
        self.kind = kind
        self.slug = slug
        super().__init__(f"Unknown {kind} filter value: {slug!r}")


class UpstreamFailure(VacancyStatsError):
    def __init__(
        self,
        month: str,
        region: Optional[str],
        occupation: Optional[str],
        cause: str,
        status: Optional[int] = None,
    ):
        self.month = month
        self.region = region
        self.occupation = occupation
        self.cause = cause
        self.status = status
        super().__init__(
            f"Upstream query failed for month={month} region={region or 'all'} "
            f"occupation={occupation or 'all'}: {cause}"
        )


class DetectionFailure(VacancyStatsError):
    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"Cutoff detection failed: {cause}")
