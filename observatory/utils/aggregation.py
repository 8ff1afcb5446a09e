"""
Climate aggregation utilities for station time series.

This module turns a batch of raw station readings into climate products:
raw readings -> daily aggregates -> monthly aggregates -> period summary.

AGGREGATION RULES:
1. RAINFALL and SUN HOURS: Always SUM, never average
2. TEMPERATURE, HUMIDITY, PRESSURE, WIND, PARTICULATES: MEAN/MAX/MIN
3. Missing samples (None/NaN/infinite) never contribute to any statistic
4. A statistic over an empty set is None, except counts and additive
   totals (rain, sun hours), which are 0

All functions are pure: inputs are never modified and identical inputs
always give identical outputs.
"""

import math
import statistics
from collections.abc import Mapping
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from observatory.schemas.climate import (
    DailyAggregate,
    MonthlyAggregate,
    PeriodSummary,
    Reading,
)
from observatory.utils.climate import (
    calculate_cdd,
    calculate_dew_point,
    calculate_et0_hargreaves,
    calculate_extraterrestrial_radiation,
    calculate_gdd,
    calculate_hdd,
    calculate_heat_index,
    classify_pm25,
    day_of_year,
    dominant_wind_direction,
)
from observatory.utils.logging_config import get_logger
from observatory.utils.quality import validate_daily

logger = get_logger(__name__)


MINUTES_PER_DAY = 1440
DEFAULT_MINUTES_PER_RECORD = 15.0
INTERVAL_SAMPLE_SIZE = 50  # readings inspected when inferring the interval
DEFAULT_LATITUDE = -4.0

SUN_HOUR_RADIATION_THRESHOLD = 120.0  # W/m², WMO sunshine threshold
RAIN_DAY_THRESHOLD = 0.2  # mm
LOW_QUALITY_COMPLETENESS = 0.75


# ============================================================================
# HELPERS
# ============================================================================

def _values(readings: List[Reading], field: str) -> List[float]:
    """Non-missing values of one field, in input order."""
    values = []
    for reading in readings:
        value = getattr(reading, field)
        if value is None or not math.isfinite(value):
            continue
        values.append(value)
    return values


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _max(values: List[float]) -> Optional[float]:
    return max(values) if values else None


def _min(values: List[float]) -> Optional[float]:
    return min(values) if values else None


def _non_null(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None]


def _check_readings(readings) -> List[Reading]:
    """Materialise a reading collection, rejecting anything that is not one."""
    if readings is None or isinstance(readings, (str, bytes, Mapping)):
        raise TypeError(
            f"readings must be an iterable of Reading, got {type(readings).__name__}"
        )
    try:
        items = list(readings)
    except TypeError:
        raise TypeError(
            f"readings must be an iterable of Reading, got {type(readings).__name__}"
        ) from None

    for item in items:
        if not isinstance(item, Reading):
            raise TypeError(f"expected Reading, got {type(item).__name__}")
    return items


def _as_aware(ts: datetime, tz: tzinfo) -> datetime:
    """Naive timestamps are wall-clock time in the station zone."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=tz)
    return ts


def local_day(ts: datetime, tz: tzinfo) -> str:
    """
    Local calendar day (YYYY-MM-DD) of an instant in the given zone.

    Example:
        A reading at 2024-01-01T02:00:00Z in a UTC-5 station belongs to
        local day '2023-12-31'.
    """
    return _as_aware(ts, tz).astimezone(tz).date().isoformat()


# ============================================================================
# SAMPLING INTERVAL
# ============================================================================

def infer_minutes_per_record(
    readings: Iterable[Reading],
    tz: tzinfo = timezone.utc
) -> float:
    """
    Infer the station sampling interval from reading timestamps.

    Takes the median of the positive gaps between consecutive readings
    (chronological order) among the first 50 timestamped readings.

    Args:
        readings: Reading batch
        tz: Zone used to interpret naive timestamps

    Returns:
        Interval in minutes; 15 when fewer than 2 readings carry a timestamp
        or every gap is zero
    """
    readings = _check_readings(readings)
    stamps = [
        _as_aware(r.timestamp, tz)
        for r in readings
        if r.timestamp is not None
    ][:INTERVAL_SAMPLE_SIZE]

    if len(stamps) < 2:
        return DEFAULT_MINUTES_PER_RECORD

    stamps.sort()
    deltas = [
        (later - earlier).total_seconds() / 60
        for earlier, later in zip(stamps, stamps[1:])
    ]
    deltas = [d for d in deltas if d > 0]
    if not deltas:
        return DEFAULT_MINUTES_PER_RECORD

    return float(statistics.median(deltas))


# ============================================================================
# DAILY AGGREGATION
# ============================================================================

def group_by_local_day(
    readings: Iterable[Reading],
    tz: tzinfo = timezone.utc
) -> Dict[str, List[Reading]]:
    """
    Group readings by local calendar day, keeping input order within a day.

    Readings without a usable timestamp are dropped, including instants
    outside the range representable in the station zone.
    """
    readings = _check_readings(readings)
    by_day: Dict[str, List[Reading]] = {}
    skipped = 0

    for reading in readings:
        if reading.timestamp is None:
            skipped += 1
            continue
        try:
            day = local_day(reading.timestamp, tz)
        except (OverflowError, ValueError):
            # instant cannot be represented in the station zone
            skipped += 1
            continue
        by_day.setdefault(day, []).append(reading)

    if skipped:
        logger.warning(f"Skipped {skipped} readings with missing, unparseable or out-of-range timestamps")

    return by_day


def build_daily_aggregate(
    day: str,
    records: List[Reading],
    minutes_per_record: float,
    latitude: float
) -> DailyAggregate:
    """
    Aggregate the readings of one local day.

    Args:
        day: Local calendar day (YYYY-MM-DD)
        records: Readings that fall on that day
        minutes_per_record: Sampling interval in minutes
        latitude: Station latitude for extraterrestrial radiation

    Returns:
        DailyAggregate with statistics, derived indices and quality flags
    """
    temps = _values(records, 'temperature')
    humids = _values(records, 'humidity')
    winds = _values(records, 'wind_speed')
    rains = _values(records, 'rainfall')
    radiations = _values(records, 'solar_radiation')
    pressures = _values(records, 'pressure')
    pm25s = _values(records, 'pm25')
    pm10s = _values(records, 'pm10')

    expected_records = max(1, round(MINUTES_PER_DAY / minutes_per_record))

    temp_max = _max(temps)
    temp_min = _min(temps)
    temp_avg = _mean(temps)
    humidity_avg = _mean(humids)

    # Sun hours: samples above the radiation threshold x sampling interval
    sunny_records = sum(1 for r in radiations if r > SUN_HOUR_RADIATION_THRESHOLD)
    sun_hours = sunny_records * minutes_per_record / 60

    gdd = calculate_gdd(temp_max, temp_min) if temp_max is not None and temp_min is not None else None
    hdd = calculate_hdd(temp_avg) if temp_avg is not None else None
    cdd = calculate_cdd(temp_avg) if temp_avg is not None else None

    et0 = None
    if temp_max is not None and temp_min is not None and temp_avg is not None:
        ra = calculate_extraterrestrial_radiation(latitude, day_of_year(day))
        et0 = calculate_et0_hargreaves(temp_avg, temp_max, temp_min, ra)

    quality = validate_daily(records)

    return DailyAggregate(
        day=day,
        records=len(records),
        expected_records=expected_records,
        completeness=len(records) / expected_records,
        has_outliers=quality.has_outliers,
        quality_flags=quality.flags,

        temp_max=temp_max,
        temp_min=temp_min,
        temp_avg=temp_avg,
        temp_range=temp_max - temp_min if temp_max is not None and temp_min is not None else None,

        humidity_avg=humidity_avg,
        humidity_max=_max(humids),
        humidity_min=_min(humids),

        wind_avg=_mean(winds),
        wind_max=_max(winds),
        wind_dominant_dir=dominant_wind_direction(r.wind_direction for r in records),

        rain_total=sum(rains),
        rain_max_intensity=_max(rains),
        rain_records=sum(1 for r in rains if r > 0),

        pressure_avg=_mean(pressures),
        pressure_max=_max(pressures),
        pressure_min=_min(pressures),

        radiation_avg=_mean(radiations),
        radiation_max=_max(radiations),
        sun_hours=sun_hours,

        pm25_avg=_mean(pm25s),
        pm25_max=_max(pm25s),
        pm10_avg=_mean(pm10s),
        pm10_max=_max(pm10s),

        gdd=gdd,
        hdd=hdd,
        cdd=cdd,
        et0=et0,
        dew_point=calculate_dew_point(temp_avg, humidity_avg),
        heat_index=calculate_heat_index(temp_avg, humidity_avg),
    )


def aggregate_daily(
    readings: Iterable[Reading],
    minutes_per_record: Optional[float] = None,
    latitude: float = DEFAULT_LATITUDE,
    tz: tzinfo = timezone.utc
) -> List[DailyAggregate]:
    """
    Compute daily aggregates from raw station readings.

    Readings are grouped by their local calendar day in ``tz`` (not by UTC
    date). Days without readings do not appear in the output.

    Args:
        readings: Reading batch, in any order
        minutes_per_record: Sampling interval in minutes (inferred when None)
        latitude: Station latitude in decimal degrees
        tz: Station time zone

    Returns:
        Daily aggregates sorted ascending by day

    Raises:
        TypeError: If readings is not an iterable of Reading
        ValueError: If minutes_per_record is not positive
    """
    readings = _check_readings(readings)

    if minutes_per_record is None:
        minutes_per_record = infer_minutes_per_record(readings, tz)
        logger.debug(f"Inferred sampling interval: {minutes_per_record} min")
    elif minutes_per_record <= 0:
        raise ValueError(f"minutes_per_record must be positive, got {minutes_per_record}")

    by_day = group_by_local_day(readings, tz)
    logger.debug(f"Aggregating {len(readings)} readings into {len(by_day)} days")

    return [
        build_daily_aggregate(day, by_day[day], minutes_per_record, latitude)
        for day in sorted(by_day)
    ]


# ============================================================================
# MONTHLY ROLLUP
# ============================================================================

def aggregate_monthly(daily: Iterable[DailyAggregate]) -> List[MonthlyAggregate]:
    """
    Roll daily aggregates up into calendar months.

    Works purely on daily values, never on raw readings:
    - Temperature / dew point: MEAN of daily means
    - Rainfall, sun hours, GDD, ET₀: SUM of daily totals
    - Extremes: absolute max/min of daily max/min

    Args:
        daily: Daily aggregates, in any order

    Returns:
        Monthly aggregates sorted ascending by month (empty for empty input)
    """
    by_month: Dict[str, List[DailyAggregate]] = {}
    for d in daily:
        by_month.setdefault(d.day[:7], []).append(d)

    monthly = []
    for month in sorted(by_month):
        days = by_month[month]
        rains = _non_null(d.rain_total for d in days)
        gdds = _non_null(d.gdd for d in days)
        et0s = _non_null(d.et0 for d in days)

        monthly.append(MonthlyAggregate(
            month=month,
            days_count=len(days),
            temp_avg=_mean(_non_null(d.temp_avg for d in days)),
            temp_max_abs=_max(_non_null(d.temp_max for d in days)),
            temp_min_abs=_min(_non_null(d.temp_min for d in days)),
            rain_total=sum(rains),
            rain_days=sum(1 for r in rains if r > RAIN_DAY_THRESHOLD),
            sun_hours_total=sum(_non_null(d.sun_hours for d in days)),
            gdd_total=sum(gdds) if gdds else None,
            et0_total=sum(et0s) if et0s else None,
            dew_point_avg=_mean(_non_null(d.dew_point for d in days)),
        ))

    return monthly


# ============================================================================
# PERIOD SUMMARY
# ============================================================================

def max_consecutive_dry_days(daily: Iterable[DailyAggregate]) -> int:
    """
    Longest run of consecutive days with rainfall below 0.2 mm.

    Days are scanned chronologically; a day without rain data counts as dry.

    Example:
        Daily totals [0, 0, 0.3, 0, 0, 0, 0] give 4.
    """
    longest = 0
    streak = 0
    for d in sorted(daily, key=lambda item: item.day):
        rain = d.rain_total if d.rain_total is not None else 0.0
        if rain < RAIN_DAY_THRESHOLD:
            streak += 1
            longest = max(longest, streak)
        else:
            streak = 0
    return longest


def summarize(
    daily: Iterable[DailyAggregate],
    raw_reading_count: int
) -> Optional[PeriodSummary]:
    """
    Top-line statistics for a query range.

    Args:
        daily: Daily aggregates for the range
        raw_reading_count: Number of raw readings received for the range

    Returns:
        PeriodSummary, or None when there are no daily aggregates
        (no data, not an error)
    """
    daily = list(daily)
    if not daily:
        return None

    rains = [d.rain_total if d.rain_total is not None else 0.0 for d in daily]
    pm25_avg = _mean(_non_null(d.pm25_avg for d in daily))

    return PeriodSummary(
        temp_avg=_mean(_non_null(d.temp_avg for d in daily)),
        temp_max=_max(_non_null(d.temp_max for d in daily)),
        temp_min=_min(_non_null(d.temp_min for d in daily)),
        rain_total=sum(rains),
        rain_days=sum(1 for r in rains if r > RAIN_DAY_THRESHOLD),
        wind_max=_max(_non_null(d.wind_max for d in daily)),
        pm25_avg=pm25_avg,
        pm25_category=classify_pm25(pm25_avg),
        total_days=len(daily),
        total_records=raw_reading_count,
        gdd_total=sum(d.gdd or 0.0 for d in daily),
        sun_hours_total=sum(d.sun_hours or 0.0 for d in daily),
        completeness_avg=sum(d.completeness for d in daily) / len(daily),
        low_quality_days=sum(1 for d in daily if d.completeness < LOW_QUALITY_COMPLETENESS),
        max_consecutive_dry_days=max_consecutive_dry_days(daily),
    )
