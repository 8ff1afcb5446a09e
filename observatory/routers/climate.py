"""
Climate products router - aggregation endpoints for the observatory dashboard.

This module provides endpoints that turn a batch of station readings into:
- Daily aggregates with quality flags and derived indices
- Monthly rollups of the daily aggregates
- A period summary for the top-line stat cards
- A wind rose (direction frequency per compass sector)
- CSV exports of the aggregates

Readings are posted as raw upstream records and mapped onto the canonical
reading shape before aggregation.
"""

import hashlib
import json
from typing import List, Tuple
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from observatory.config import settings
from observatory.schemas.climate import (
    ClimateReport,
    ClimateReportRequest,
    DailyAggregate,
    MonthlyAggregate,
    PeriodSummary,
    QualityFlags,
    Reading,
)
from observatory.utils import aggregation
from observatory.utils.cache import cache, make_cache_key
from observatory.utils.climate import wind_rose
from observatory.utils.export import daily_to_csv, monthly_to_csv
from observatory.utils.logging_config import get_logger
from observatory.utils.normalization import normalize_payload
from observatory.utils.quality import validate_daily

logger = get_logger(__name__)

router = APIRouter(
    prefix="/climate",
    tags=["Climate Products"],
    responses={
        400: {"description": "Bad request - Invalid parameters"},
        404: {"description": "No data for the requested batch"},
    },
)

limiter = Limiter(key_func=get_remote_address)

RATE_LIMIT = f"{settings.RATE_LIMIT_REQUESTS}/{settings.RATE_LIMIT_WINDOW}seconds"


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA zone, turning unknown names into a 400."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Unknown time zone requested: {name!r}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown time zone: {name}"
        ) from e


def _prepare(payload: ClimateReportRequest) -> Tuple[List[Reading], str, tzinfo, float, float]:
    """Normalize readings and resolve station parameters for a request."""
    tz_name = payload.timezone or settings.STATION_TIMEZONE
    tz = resolve_timezone(tz_name)
    latitude = payload.latitude if payload.latitude is not None else settings.DEFAULT_LATITUDE

    readings = normalize_payload(payload.readings)
    minutes_per_record = payload.minutes_per_record
    if minutes_per_record is None:
        minutes_per_record = aggregation.infer_minutes_per_record(readings, tz)

    return readings, tz_name, tz, latitude, minutes_per_record


def _daily(payload: ClimateReportRequest) -> Tuple[List[Reading], List[DailyAggregate]]:
    readings, _, tz, latitude, minutes_per_record = _prepare(payload)
    daily = aggregation.aggregate_daily(
        readings,
        minutes_per_record=minutes_per_record,
        latitude=latitude,
        tz=tz,
    )
    return readings, daily


def _report_cache_key(payload: ClimateReportRequest) -> str:
    body = json.dumps(payload.model_dump(mode="json"), sort_keys=True, default=str)
    digest = hashlib.sha256(body.encode("utf-8")).hexdigest()
    return make_cache_key("observatory", "report", payload.station_id or "-", digest)


# ============================================================================
# FULL REPORT
# ============================================================================

@router.post("/report", response_model=ClimateReport)
@limiter.limit(RATE_LIMIT)
async def get_climate_report(
    request: Request,
    payload: ClimateReportRequest,
):
    """
    Compute daily, monthly and period products for a reading batch.

    Readings are grouped by their local calendar day in the station time
    zone. The sampling interval is inferred from the timestamps when
    `minutes_per_record` is omitted; latitude and time zone fall back to the
    deployment defaults.

    Results are cached per request body.

    **Example request**:
    ```
    POST /api/v1/climate/report
    {"station_id": "utpl-01", "latitude": -3.99, "timezone": "America/Guayaquil",
     "readings": [{"fecha_loja": "2024-05-01 10:00:00", "temp_aire": "18,4"}]}
    ```
    """
    cache_key = _report_cache_key(payload)
    cached = cache.get(cache_key)
    if cached is not None:
        return ClimateReport.model_validate(cached)

    readings, tz_name, tz, latitude, minutes_per_record = _prepare(payload)
    daily = aggregation.aggregate_daily(
        readings,
        minutes_per_record=minutes_per_record,
        latitude=latitude,
        tz=tz,
    )
    report = ClimateReport(
        station_id=payload.station_id,
        latitude=latitude,
        timezone=tz_name,
        minutes_per_record=minutes_per_record,
        total_records=len(readings),
        daily=daily,
        monthly=aggregation.aggregate_monthly(daily),
        summary=aggregation.summarize(daily, len(readings)),
        wind_rose=wind_rose(r.wind_direction for r in readings),
    )

    logger.info(
        f"Climate report for {payload.station_id or 'unknown station'}: "
        f"{len(readings)} readings, {len(daily)} days"
    )
    cache.set(cache_key, report.model_dump(mode="json"))
    return report


# ============================================================================
# INDIVIDUAL PRODUCTS
# ============================================================================

@router.post("/daily", response_model=List[DailyAggregate])
@limiter.limit(RATE_LIMIT)
async def get_daily_aggregates(
    request: Request,
    payload: ClimateReportRequest,
):
    """
    Daily aggregates for a reading batch, ascending by day.

    Each day carries record counts and completeness, quality flags,
    temperature/humidity/wind/rain/pressure/radiation/particulate statistics
    and the derived indices (GDD, HDD, CDD, ET₀, dew point, heat index).
    """
    _, daily = _daily(payload)
    return daily


@router.post("/monthly", response_model=List[MonthlyAggregate])
@limiter.limit(RATE_LIMIT)
async def get_monthly_aggregates(
    request: Request,
    daily: List[DailyAggregate],
):
    """
    Roll previously computed daily aggregates up into calendar months.
    """
    return aggregation.aggregate_monthly(daily)


@router.post("/summary", response_model=PeriodSummary)
@limiter.limit(RATE_LIMIT)
async def get_period_summary(
    request: Request,
    payload: ClimateReportRequest,
):
    """
    Period summary for the stat cards.

    Raises:
        HTTPException: 404 if the batch contains no usable readings
    """
    readings, daily = _daily(payload)
    summary = aggregation.summarize(daily, len(readings))
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No readings with a valid timestamp in the submitted batch"
        )
    return summary


@router.post("/quality", response_model=QualityFlags)
@limiter.limit(RATE_LIMIT)
async def check_quality(
    request: Request,
    payload: ClimateReportRequest,
):
    """
    Physical plausibility flags for a batch of readings (typically one day).
    """
    readings = normalize_payload(payload.readings)
    return validate_daily(readings)


# ============================================================================
# CSV EXPORT
# ============================================================================

@router.post("/daily.csv")
@limiter.limit(RATE_LIMIT)
async def export_daily_csv(
    request: Request,
    payload: ClimateReportRequest,
):
    """
    Daily aggregates as CSV; missing values are empty cells.
    """
    _, daily = _daily(payload)
    filename = f"daily_{payload.station_id or 'station'}.csv"
    return Response(
        content=daily_to_csv(daily),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/monthly.csv")
@limiter.limit(RATE_LIMIT)
async def export_monthly_csv(
    request: Request,
    payload: ClimateReportRequest,
):
    """
    Monthly aggregates as CSV; missing values are empty cells.
    """
    _, daily = _daily(payload)
    filename = f"monthly_{payload.station_id or 'station'}.csv"
    return Response(
        content=monthly_to_csv(aggregation.aggregate_monthly(daily)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
