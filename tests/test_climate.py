"""
Tests for derived agrometeorological indices.

This module tests:
- Extraterrestrial radiation and Hargreaves ET₀
- Degree-day indices (GDD, HDD, CDD)
- Dew point and heat index
- Day of year
- Dominant wind direction
- PM2.5 air-quality category
"""

import math
from datetime import date

import pytest

from observatory.utils.climate import (
    calculate_cdd,
    calculate_dew_point,
    calculate_et0_hargreaves,
    calculate_extraterrestrial_radiation,
    calculate_gdd,
    calculate_hdd,
    calculate_heat_index,
    classify_pm25,
    compass_sector,
    day_of_year,
    dominant_wind_direction,
    normalize_direction,
    wind_rose,
)


class TestDegreeDays:
    """Test degree-day calculations."""

    def test_gdd_average_method(self):
        """Tmax=32, Tmin=22 -> Tavg=27 -> GDD=17."""
        assert calculate_gdd(32.0, 22.0) == 17.0

    def test_gdd_never_negative(self):
        """Cold day gives 0, not a negative GDD."""
        assert calculate_gdd(5.0, 0.0) == 0.0

    def test_hdd_and_cdd_are_complementary(self):
        """Only one of HDD/CDD is positive for a given mean."""
        assert calculate_hdd(12.0) == 6.0
        assert calculate_cdd(12.0) == 0.0
        assert calculate_hdd(24.5) == 0.0
        assert calculate_cdd(24.5) == 6.5


class TestET0Calculation:
    """Test reference evapotranspiration calculations."""

    def test_extraterrestrial_radiation_near_equator(self):
        """Ra near 5.6°N in mid-March is ~35-40 MJ/m²/day."""
        Ra = calculate_extraterrestrial_radiation(5.6, 74)
        assert 35.0 < Ra < 40.0

    def test_extraterrestrial_radiation_equator_equinox(self):
        """At the equator during the equinox Ra is high."""
        assert calculate_extraterrestrial_radiation(0.0, 80) > 35.0

    def test_extraterrestrial_radiation_seasonal_variation(self):
        """Ra varies by season at the same location."""
        Ra_march = calculate_extraterrestrial_radiation(-4.0, 80)
        Ra_december = calculate_extraterrestrial_radiation(-4.0, 355)
        assert Ra_march != Ra_december

    def test_extraterrestrial_radiation_polar_night(self):
        """Polar night gives 0 instead of a math domain error."""
        Ra = calculate_extraterrestrial_radiation(80.0, 355)
        assert Ra == 0.0

    def test_extraterrestrial_radiation_midnight_sun(self):
        """Midnight sun is still a finite, positive value."""
        Ra = calculate_extraterrestrial_radiation(80.0, 172)
        assert Ra > 0
        assert math.isfinite(Ra)

    def test_et0_hargreaves_formula(self):
        """ET₀ follows 0.0023 (Tmean + 17.8) sqrt(Tmax - Tmin) Ra."""
        ra = calculate_extraterrestrial_radiation(5.6, 74)
        et0 = calculate_et0_hargreaves(28.0, 32.0, 24.0, ra)
        expected = 0.0023 * (28.0 + 17.8) * math.sqrt(8.0) * ra
        assert et0 == pytest.approx(expected)

    def test_et0_equal_temperatures_is_zero(self):
        """Tmax == Tmin gives 0, not NaN."""
        et0 = calculate_et0_hargreaves(22.0, 22.0, 22.0, 37.0)
        assert et0 == 0.0
        assert not math.isnan(et0)

    def test_et0_inverted_range_is_zero(self):
        """Tmax < Tmin (bad data) gives 0."""
        assert calculate_et0_hargreaves(20.0, 18.0, 22.0, 37.0) == 0.0

    def test_et0_without_radiation_is_zero(self):
        """Ra <= 0 gives 0."""
        assert calculate_et0_hargreaves(20.0, 25.0, 15.0, 0.0) == 0.0

    def test_et0_wider_range_increases_et0(self):
        """Larger temperature range increases ET₀."""
        ra = calculate_extraterrestrial_radiation(-4.0, 120)
        et0_narrow = calculate_et0_hargreaves(27.0, 28.0, 26.0, ra)
        et0_wide = calculate_et0_hargreaves(27.0, 32.0, 22.0, ra)
        assert et0_wide > et0_narrow


class TestDayOfYear:
    """Test day-of-year computation from local calendar days."""

    def test_first_day(self):
        assert day_of_year('2024-01-01') == 1

    def test_last_day_of_leap_year(self):
        assert day_of_year('2024-12-31') == 366

    def test_last_day_of_common_year(self):
        assert day_of_year('2023-12-31') == 365

    def test_accepts_date(self):
        assert day_of_year(date(2024, 3, 1)) == 61


class TestDewPointAndHeatIndex:
    """Test humidity-derived indices."""

    def test_dew_point(self):
        """T=20, RH=80 -> 20 - 20/5 = 16."""
        assert calculate_dew_point(20.0, 80.0) == 16.0

    def test_dew_point_saturated(self):
        """At 100% RH the dew point equals the air temperature."""
        assert calculate_dew_point(18.5, 100.0) == 18.5

    def test_dew_point_missing_input(self):
        assert calculate_dew_point(None, 80.0) is None
        assert calculate_dew_point(20.0, None) is None

    def test_heat_index_below_temperature_gate(self):
        """T=25 is below the 27°C envelope even with high humidity."""
        assert calculate_heat_index(25.0, 90.0) is None

    def test_heat_index_below_humidity_gate(self):
        """RH=40 is at the boundary and therefore excluded."""
        assert calculate_heat_index(35.0, 40.0) is None

    def test_heat_index_at_temperature_boundary(self):
        """T=27 exactly is excluded."""
        assert calculate_heat_index(27.0, 80.0) is None

    def test_heat_index_hot_humid(self):
        """T=30, RH=70 gives ~35°C (NOAA table)."""
        hi = calculate_heat_index(30.0, 70.0)
        assert hi is not None
        assert 34.5 < hi < 35.5

    def test_heat_index_missing_input(self):
        assert calculate_heat_index(None, 70.0) is None


class TestWindDirection:
    """Test compass sectors and dominant wind direction."""

    @pytest.mark.parametrize("degrees,sector", [
        (0.0, 'N'),
        (22.4, 'N'),
        (22.5, 'NE'),
        (67.5, 'E'),
        (157.5, 'S'),
        (202.5, 'SW'),
        (292.5, 'NW'),
        (337.4, 'NW'),
        (337.5, 'N'),
        (359.9, 'N'),
    ])
    def test_sector_boundaries(self, degrees, sector):
        assert compass_sector(degrees) == sector

    def test_normalize_direction_out_of_range(self):
        """Negative and >360 angles are wrapped."""
        assert normalize_direction(-90.0) == 270.0
        assert normalize_direction(765.0) == 45.0
        assert compass_sector(-90.0) == 'W'

    def test_dominant_direction(self):
        assert dominant_wind_direction([100.0, 95.0, 180.0, 90.0]) == 'E'

    def test_tie_goes_to_earliest_sector_in_input(self):
        """Two sectors with equal counts: the one seen first wins."""
        assert dominant_wind_direction([90.0, 95.0, 0.0, 10.0]) == 'E'
        assert dominant_wind_direction([0.0, 10.0, 90.0, 95.0]) == 'N'

    def test_skips_missing_samples(self):
        assert dominant_wind_direction([None, 225.0, float('nan')]) == 'SW'

    def test_no_valid_samples(self):
        assert dominant_wind_direction([]) is None
        assert dominant_wind_direction([None, None]) is None

    def test_infinite_samples_skipped(self):
        assert dominant_wind_direction([float('inf'), 270.0]) == 'W'

    def test_wind_rose_frequencies(self):
        """Percent per sector with one decimal, all sectors in N..NW order."""
        rose = wind_rose([0.0, 90.0, 95.0, 180.0, None, float('nan')])

        assert list(rose) == ['N', 'NE', 'E', 'SE', 'S', 'SW', 'W', 'NW']
        assert rose['N'] == 25.0
        assert rose['E'] == 50.0
        assert rose['S'] == 25.0
        assert rose['NW'] == 0.0

    def test_wind_rose_rounding(self):
        rose = wind_rose([10.0, 100.0, 190.0])
        assert rose['N'] == 33.3
        assert sum(rose.values()) == pytest.approx(99.9)

    def test_wind_rose_without_samples(self):
        assert wind_rose([]) == {}
        assert wind_rose([None, float('inf')]) == {}

    def test_dominant_matches_wind_rose_peak(self):
        directions = [200.0, 210.0, 40.0, 230.0, 300.0]
        rose = wind_rose(directions)
        assert dominant_wind_direction(directions) == max(rose, key=rose.get)


class TestPM25Category:
    """Test the PM2.5 air-quality category."""

    @pytest.mark.parametrize("pm25,category", [
        (0.0, 'Good'),
        (12.0, 'Good'),
        (12.1, 'Moderate'),
        (35.4, 'Moderate'),
        (40.0, 'Unhealthy for Sensitive Groups'),
        (100.0, 'Unhealthy'),
        (200.0, 'Hazardous'),
    ])
    def test_breakpoints(self, pm25, category):
        assert classify_pm25(pm25) == category

    def test_missing(self):
        assert classify_pm25(None) is None
