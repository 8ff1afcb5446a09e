"""
Tests for upstream record normalization and lenient parsing.
"""

from datetime import datetime, timedelta, timezone

import pytest

from observatory.utils.normalization import normalize_payload, normalize_reading
from observatory.utils.parsing import parse_number, parse_timestamp


class TestParseNumber:
    """Numbers arrive as floats, ints and locale strings."""

    @pytest.mark.parametrize("raw,expected", [
        (12.5, 12.5),
        (7, 7.0),
        ("12.5", 12.5),
        ("12,5", 12.5),
        (" -3,25 ", -3.25),
        ("0", 0.0),
    ])
    def test_valid_values(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "n/a", "1,2,3", float('nan'), True, [1.0], {}])
    def test_invalid_values_become_none(self, raw):
        assert parse_number(raw) is None

    @pytest.mark.parametrize("raw", [
        "1e999",
        "Infinity",
        "-inf",
        float('inf'),
        float('-inf'),
        10 ** 400,
    ])
    def test_non_finite_and_overflowing_values_become_none(self, raw):
        """Values that cannot be a finite float are missing, not errors."""
        assert parse_number(raw) is None


class TestParseTimestamp:
    """Timestamp shapes used by the station API."""

    def test_space_separated_local_time(self):
        assert parse_timestamp("2024-05-01 10:30:00") == datetime(2024, 5, 1, 10, 30)

    def test_trailing_z_is_utc(self):
        ts = parse_timestamp("2024-05-01T10:30:00Z")
        assert ts == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)

    def test_explicit_offset(self):
        ts = parse_timestamp("2024-05-01T10:30:00-05:00")
        assert ts.utcoffset() == timedelta(hours=-5)

    def test_date_only(self):
        assert parse_timestamp("2024-05-01") == datetime(2024, 5, 1)

    def test_datetime_passes_through(self):
        ts = datetime(2024, 5, 1, 8, tzinfo=timezone.utc)
        assert parse_timestamp(ts) is ts

    @pytest.mark.parametrize("raw", [None, "", "yesterday", "2024-13-45 99:00:00", 1714550000])
    def test_unparseable(self, raw):
        assert parse_timestamp(raw) is None


class TestNormalizeReading:
    """Field-name mapping onto the canonical reading."""

    def test_v21_field_names(self):
        reading = normalize_reading({
            "fecha_loja": "2024-05-01 10:00:00",
            "temp_aire": "18,4",
            "hum_relativa": 82,
            "presion_bar": 761.2,
            "viento_vel": "2,1",
            "viento_dir": 135,
            "lluvia_mm": "0,2",
            "rad_solar": 420,
            "indice_uv": 5,
            "pm_2p5": 9.5,
            "pm_10": 14,
            "voltaje_bateria": 12.6,
        })

        assert reading.timestamp == datetime(2024, 5, 1, 10, 0)
        assert reading.temperature == 18.4
        assert reading.humidity == 82.0
        assert reading.pressure == 761.2
        assert reading.wind_speed == 2.1
        assert reading.wind_direction == 135.0
        assert reading.rainfall == 0.2
        assert reading.solar_radiation == 420.0
        assert reading.uv_index == 5.0
        assert reading.pm25 == 9.5
        assert reading.pm10 == 14.0
        assert reading.battery_voltage == 12.6

    def test_priority_order(self):
        """Higher-priority names win when several are present."""
        reading = normalize_reading({
            "timestamp": "2024-05-02T00:00:00Z",
            "fecha_loja": "2024-05-01 10:00:00",
            "temperatura": 30.0,
            "temp_aire": 18.0,
        })
        assert reading.timestamp == datetime(2024, 5, 1, 10, 0)
        assert reading.temperature == 18.0

    def test_null_candidate_falls_through(self):
        """A present-but-null field does not hide a lower-priority one."""
        reading = normalize_reading({"temp_aire": None, "temp_promedio": 12.0})
        assert reading.temperature == 12.0

    def test_canonical_names_accepted(self):
        reading = normalize_reading({"timestamp": "2024-05-01T00:00:00Z", "rainfall": 1.5})
        assert reading.rainfall == 1.5

    def test_daily_report_names(self):
        reading = normalize_reading({"dia": "2024-05-01", "lluvia_acumulada": "3,4"})
        assert reading.timestamp == datetime(2024, 5, 1)
        assert reading.rainfall == 3.4

    def test_huge_and_infinite_values(self):
        reading = normalize_reading({
            "fecha_loja": "2024-05-01 10:00:00",
            "temp_aire": 10 ** 400,
            "viento_dir": "1e999",
            "hum_relativa": "80",
        })
        assert reading.temperature is None
        assert reading.wind_direction is None
        assert reading.humidity == 80.0

    def test_missing_and_unreadable_fields(self):
        reading = normalize_reading({"fecha_loja": "garbage", "temp_aire": "--"})
        assert reading.timestamp is None
        assert reading.temperature is None
        assert reading.humidity is None


class TestNormalizePayload:
    """Response bodies come bare or wrapped."""

    records = [
        {"fecha_loja": "2024-05-01 10:00:00", "temp_aire": 18.0},
        {"fecha_loja": "2024-05-01 10:15:00", "temp_aire": 18.5},
    ]

    def test_bare_list(self):
        readings = normalize_payload(self.records)
        assert [r.temperature for r in readings] == [18.0, 18.5]

    @pytest.mark.parametrize("key", ["data", "results"])
    def test_wrapped_list(self, key):
        readings = normalize_payload({key: self.records, "count": 2})
        assert len(readings) == 2

    def test_unrecognised_shape(self):
        assert normalize_payload({"error": "timeout"}) == []
        assert normalize_payload("not json") == []
        assert normalize_payload(None) == []

    def test_non_record_items_skipped(self):
        readings = normalize_payload([self.records[0], None, 42, "x", self.records[1]])
        assert len(readings) == 2
