"""
Climate aggregation schemas.

This module defines the canonical station reading and the aggregate
products computed from it:
- Reading: one instrument sample
- DailyAggregate: one local calendar day for one station
- MonthlyAggregate: rollup of daily aggregates for one calendar month
- PeriodSummary: top-line figures for a whole query range
- QualityFlags: physically implausible values found in a day
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from observatory.schemas.base import BaseSchema, FrozenSchema
from observatory.utils.parsing import parse_number, parse_timestamp


NUMERIC_FIELDS = (
    "temperature",
    "humidity",
    "pressure",
    "wind_speed",
    "wind_direction",
    "rainfall",
    "solar_radiation",
    "uv_index",
    "pm25",
    "pm10",
    "battery_voltage",
)


class Reading(FrozenSchema):
    """
    Canonical station reading.

    Every measurement is optional: a missing sensor and a sensor without a
    valid sample are both represented as None. Invalid numbers and
    timestamps degrade to None instead of failing validation.
    """

    timestamp: Optional[datetime] = Field(
        None,
        description="Sample instant; naive values are wall-clock time in the station zone"
    )
    temperature: Optional[float] = Field(None, description="Air temperature (°C)")
    humidity: Optional[float] = Field(None, description="Relative humidity (%)")
    pressure: Optional[float] = Field(None, description="Barometric pressure (hPa)")
    wind_speed: Optional[float] = Field(None, description="Wind speed (caller's unit, m/s or km/h)")
    wind_direction: Optional[float] = Field(None, description="Wind direction (degrees, 0=North)")
    rainfall: Optional[float] = Field(None, description="Rainfall (mm)")
    solar_radiation: Optional[float] = Field(None, description="Solar radiation (W/m²)")
    uv_index: Optional[float] = Field(None, description="UV index")
    pm25: Optional[float] = Field(None, description="PM2.5 (µg/m³)")
    pm10: Optional[float] = Field(None, description="PM10 (µg/m³)")
    battery_voltage: Optional[float] = Field(None, description="Logger battery voltage (V)")

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp_leniently(cls, v: Any) -> Optional[datetime]:
        """Unparseable timestamps become None so the reading is skipped, not rejected."""
        return parse_timestamp(v)

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def parse_numeric_leniently(cls, v: Any) -> Optional[float]:
        """Accept decimal-comma strings; anything unreadable becomes None."""
        return parse_number(v)


class QualityFlags(BaseSchema):
    """Result of the physical plausibility scan for one day."""

    has_outliers: bool = Field(..., description="True when at least one flag was raised")
    flags: List[str] = Field(default_factory=list, description="One code per violated category")


class DailyAggregate(FrozenSchema):
    """Aggregated values and derived indices for one local calendar day."""

    day: str = Field(..., description="Local calendar day (YYYY-MM-DD)")

    # Counts and quality
    records: int = Field(0, description="Number of readings in the day")
    expected_records: int = Field(..., description="Readings expected at the sampling interval")
    completeness: float = Field(..., description="records / expected_records")
    has_outliers: bool = Field(False, description="Physically implausible values present")
    quality_flags: List[str] = Field(default_factory=list, description="Plausibility flag codes")

    # Temperature
    temp_max: Optional[float] = Field(None, description="Maximum temperature (°C)")
    temp_min: Optional[float] = Field(None, description="Minimum temperature (°C)")
    temp_avg: Optional[float] = Field(None, description="Mean temperature (°C)")
    temp_range: Optional[float] = Field(None, description="Daily temperature range (°C)")

    # Humidity
    humidity_avg: Optional[float] = Field(None, description="Mean relative humidity (%)")
    humidity_max: Optional[float] = Field(None, description="Maximum relative humidity (%)")
    humidity_min: Optional[float] = Field(None, description="Minimum relative humidity (%)")

    # Wind
    wind_avg: Optional[float] = Field(None, description="Mean wind speed")
    wind_max: Optional[float] = Field(None, description="Maximum wind speed (gust)")
    wind_dominant_dir: Optional[str] = Field(None, description="Most frequent 45° compass sector")

    # Rain (rain_total is additive: zero when no samples)
    rain_total: float = Field(0.0, description="Accumulated rainfall (mm)")
    rain_max_intensity: Optional[float] = Field(None, description="Largest single rainfall sample (mm)")
    rain_records: int = Field(0, description="Readings with rainfall > 0")

    # Pressure
    pressure_avg: Optional[float] = Field(None, description="Mean pressure (hPa)")
    pressure_max: Optional[float] = Field(None, description="Maximum pressure (hPa)")
    pressure_min: Optional[float] = Field(None, description="Minimum pressure (hPa)")

    # Radiation (sun_hours is additive: zero when no samples)
    radiation_avg: Optional[float] = Field(None, description="Mean solar radiation (W/m²)")
    radiation_max: Optional[float] = Field(None, description="Maximum solar radiation (W/m²)")
    sun_hours: float = Field(0.0, description="Hours with radiation above 120 W/m²")

    # Particulates
    pm25_avg: Optional[float] = Field(None, description="Mean PM2.5 (µg/m³)")
    pm25_max: Optional[float] = Field(None, description="Maximum PM2.5 (µg/m³)")
    pm10_avg: Optional[float] = Field(None, description="Mean PM10 (µg/m³)")
    pm10_max: Optional[float] = Field(None, description="Maximum PM10 (µg/m³)")

    # Derived indices
    gdd: Optional[float] = Field(None, description="Growing degree-days, base 10°C")
    hdd: Optional[float] = Field(None, description="Heating degree-days, base 18°C")
    cdd: Optional[float] = Field(None, description="Cooling degree-days, base 18°C")
    et0: Optional[float] = Field(None, description="Reference evapotranspiration (Hargreaves)")
    dew_point: Optional[float] = Field(None, description="Dew point (°C)")
    heat_index: Optional[float] = Field(None, description="NOAA heat index (°C)")


class MonthlyAggregate(FrozenSchema):
    """Rollup of the daily aggregates that fall in one calendar month."""

    month: str = Field(..., description="Calendar month (YYYY-MM)")
    days_count: int = Field(..., description="Days with at least one reading")
    temp_avg: Optional[float] = Field(None, description="Mean of daily mean temperatures (°C)")
    temp_max_abs: Optional[float] = Field(None, description="Absolute maximum temperature (°C)")
    temp_min_abs: Optional[float] = Field(None, description="Absolute minimum temperature (°C)")
    rain_total: float = Field(0.0, description="Accumulated rainfall (mm)")
    rain_days: int = Field(0, description="Days with rainfall > 0.2 mm")
    sun_hours_total: float = Field(0.0, description="Accumulated sun hours")
    gdd_total: Optional[float] = Field(None, description="Accumulated growing degree-days")
    et0_total: Optional[float] = Field(None, description="Accumulated reference evapotranspiration")
    dew_point_avg: Optional[float] = Field(None, description="Mean of daily dew points (°C)")


class PeriodSummary(FrozenSchema):
    """Top-line statistics for a station over a query range."""

    temp_avg: Optional[float] = Field(None, description="Mean of daily mean temperatures (°C)")
    temp_max: Optional[float] = Field(None, description="Highest daily maximum (°C)")
    temp_min: Optional[float] = Field(None, description="Lowest daily minimum (°C)")
    rain_total: float = Field(0.0, description="Accumulated rainfall (mm)")
    rain_days: int = Field(0, description="Days with rainfall > 0.2 mm")
    wind_max: Optional[float] = Field(None, description="Strongest gust")
    pm25_avg: Optional[float] = Field(None, description="Mean of daily PM2.5 means (µg/m³)")
    pm25_category: Optional[str] = Field(None, description="Air-quality category of pm25_avg")
    total_days: int = Field(..., description="Days with data")
    total_records: int = Field(..., description="Raw readings received")
    gdd_total: float = Field(0.0, description="Accumulated growing degree-days")
    sun_hours_total: float = Field(0.0, description="Accumulated sun hours")
    completeness_avg: float = Field(..., description="Mean daily completeness")
    low_quality_days: int = Field(0, description="Days with completeness < 0.75")
    max_consecutive_dry_days: int = Field(0, description="Longest run of days with rainfall < 0.2 mm")


# ============================================================================
# REQUEST / RESPONSE BODIES
# ============================================================================

class ClimateReportRequest(BaseSchema):
    """Batch of raw upstream readings to aggregate for one station."""

    station_id: Optional[str] = Field(None, description="Station identifier (used for caching and logs)")
    readings: List[Dict[str, Any]] = Field(
        ...,
        description="Raw upstream records; field names are mapped onto the canonical reading"
    )
    minutes_per_record: Optional[float] = Field(
        None,
        gt=0,
        description="Sampling interval in minutes; inferred from the timestamps when omitted"
    )
    latitude: Optional[float] = Field(
        None,
        ge=-90,
        le=90,
        description="Station latitude (decimal degrees); defaults to the deployment region"
    )
    timezone: Optional[str] = Field(
        None,
        description="IANA time zone of the station, e.g. 'America/Guayaquil'"
    )


class ClimateReport(BaseSchema):
    """Daily, monthly and period products for one reading batch."""

    station_id: Optional[str] = None
    latitude: float
    timezone: str
    minutes_per_record: float
    total_records: int
    daily: List[DailyAggregate]
    monthly: List[MonthlyAggregate]
    summary: Optional[PeriodSummary] = None
    wind_rose: Dict[str, float] = Field(
        default_factory=dict,
        description="Percent of wind direction samples per compass sector over the batch"
    )
