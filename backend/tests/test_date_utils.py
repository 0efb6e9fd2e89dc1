from datetime import date

import pytest

from vacancy_stats.date_utils import (
    default_from_date,
    default_to_date,
    end_of_month_instant,
    format_month_for_display,
    month_to_date_range,
    months_between,
    months_in_range,
    parse_instant,
    parse_month,
    resolve_date_range,
    trailing_months,
)


def test_month_to_date_range_leap_february():
    assert month_to_date_range("2024-02") == ("2024-02-01T00:00:00", "2024-02-29T23:59:59")


def test_month_to_date_range_regular_months():
    assert month_to_date_range("2023-02") == ("2023-02-01T00:00:00", "2023-02-28T23:59:59")
    assert month_to_date_range("2024-12") == ("2024-12-01T00:00:00", "2024-12-31T23:59:59")
    assert end_of_month_instant("2024-04") == "2024-04-30T23:59:59"


@pytest.mark.parametrize("bad", ["2024-13", "2024-1", "24-01", "", "2024/01"])
def test_parse_month_rejects_garbage(bad):
    with pytest.raises(ValueError):
        parse_month(bad)


def test_months_in_range_spans_year_boundary():
    months = months_in_range("2024-11-15T00:00:00", "2025-02-03T23:59:59")
    assert months == ["2024-11", "2024-12", "2025-01", "2025-02"]


def test_months_in_range_single_month():
    assert months_in_range("2024-05-01T00:00:00", "2024-05-31T23:59:59") == ["2024-05"]


def test_months_in_range_accepts_plain_dates():
    assert months_in_range("2024-01-01", "2024-03-01") == ["2024-01", "2024-02", "2024-03"]


def test_months_in_range_invalid_or_reversed_is_empty():
    assert months_in_range("not a date", "2024-03-01T00:00:00") == []
    assert months_in_range("2024-05-01T00:00:00", "2024-04-30T23:59:59") == []


def test_months_between_inclusive():
    assert months_between("2024-12", "2025-01") == ["2024-12", "2025-01"]
    assert months_between("2025-01", "2024-12") == []


def test_trailing_months_ends_with_current_month():
    months = trailing_months(12, today=date(2025, 3, 15))
    assert len(months) == 12
    assert months[0] == "2024-04"
    assert months[-1] == "2025-03"


def test_default_range_is_last_twelve_months():
    today = date(2024, 6, 10)
    assert default_from_date(today) == "2023-06-10T00:00:00"
    assert default_to_date(today) == "2024-06-10T23:59:59"


def test_default_from_date_clamps_leap_day():
    assert default_from_date(date(2024, 2, 29)) == "2023-02-28T00:00:00"


def test_format_month_for_display():
    assert format_month_for_display("2024-05") == "maj 2024"
    assert format_month_for_display("2023-10") == "okt 2023"


def test_resolve_date_range_prefers_month_parameters():
    assert resolve_date_range("2024-01", "2024-03", "2020-01-01", "2020-02-01") == (
        "2024-01-01T00:00:00",
        "2024-03-31T23:59:59",
    )


def test_resolve_date_range_accepts_legacy_day_parameters():
    assert resolve_date_range(legacy_from="2024-01-15", legacy_to="2024-02-10") == (
        "2024-01-15T00:00:00",
        "2024-02-10T23:59:59",
    )


def test_resolve_date_range_falls_back_to_defaults():
    today = date(2024, 6, 10)
    expected = ("2023-06-10T00:00:00", "2024-06-10T23:59:59")
    assert resolve_date_range(today=today) == expected
    assert resolve_date_range("2024-99", "2024-01", today=today) == expected
    assert resolve_date_range("2024-01", None, today=today) == expected


def test_parse_instant_accepts_utc_suffix():
    assert parse_instant("2024-03-31T23:59:59Z") == parse_instant("2024-03-31T23:59:59")
    assert parse_instant("2024-03-31T23:59:59+02:00").tzinfo is None


def test_months_in_range_with_utc_suffix():
    assert months_in_range("2024-01-01T00:00:00Z", "2024-03-31T23:59:59Z") == ["2024-01", "2024-02", "2024-03"]
