"""
Tests for CSV export of aggregates.
"""

import csv
import io

import pytest

from observatory.schemas.climate import DailyAggregate, MonthlyAggregate
from observatory.utils.export import (
    DAILY_CSV_FIELDS,
    MONTHLY_CSV_FIELDS,
    daily_to_csv,
    format_value,
    monthly_to_csv,
)


@pytest.mark.parametrize("value,expected", [
    (None, ""),
    (True, "true"),
    (False, "false"),
    (0.8333333, "0.8333"),
    (12.0, "12"),
    (0.0, "0"),
    (-0.00001, "0"),
    (-3.5, "-3.5"),
    (96, "96"),
    (["T>50°C", "Viento<0"], "T>50°C;Viento<0"),
    ([], ""),
    ("NE", "NE"),
])
def test_format_value(value, expected):
    assert format_value(value) == expected


def test_daily_csv():
    daily = [
        DailyAggregate(
            day="2024-05-01", records=80, expected_records=96, completeness=80 / 96,
            has_outliers=True, quality_flags=["T>50°C", "P<500hPa"],
            temp_max=24.0, temp_min=14.0, temp_avg=19.0, wind_dominant_dir="S",
        ),
        DailyAggregate(day="2024-05-02", records=1, expected_records=96, completeness=1 / 96),
    ]
    rows = list(csv.DictReader(io.StringIO(daily_to_csv(daily))))

    assert len(rows) == 2
    assert tuple(rows[0].keys()) == DAILY_CSV_FIELDS
    assert rows[0]["day"] == "2024-05-01"
    assert rows[0]["completeness"] == "0.8333"
    assert rows[0]["has_outliers"] == "true"
    assert rows[0]["quality_flags"] == "T>50°C;P<500hPa"
    assert rows[0]["temp_avg"] == "19"
    assert rows[0]["wind_dominant_dir"] == "S"
    assert rows[1]["temp_avg"] == ""
    assert rows[1]["rain_total"] == "0"


def test_monthly_csv():
    monthly = [MonthlyAggregate(month="2024-05", days_count=2, rain_total=3.6, rain_days=2)]
    text = monthly_to_csv(monthly)
    lines = text.splitlines()

    assert lines[0] == ",".join(MONTHLY_CSV_FIELDS)
    assert lines[1].startswith("2024-05,2,")
    assert len(lines) == 2


def test_empty_export_has_header_only():
    assert daily_to_csv([]) == ",".join(DAILY_CSV_FIELDS) + "\n"
