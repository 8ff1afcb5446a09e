# Pydantic schemas package

from observatory.schemas.base import BaseSchema, FrozenSchema
from observatory.schemas.climate import (
    Reading, QualityFlags,
    DailyAggregate, MonthlyAggregate, PeriodSummary,
    ClimateReportRequest, ClimateReport,
)

__all__ = [
    # Base schemas
    "BaseSchema", "FrozenSchema",

    # Climate schemas
    "Reading", "QualityFlags",
    "DailyAggregate", "MonthlyAggregate", "PeriodSummary",
    "ClimateReportRequest", "ClimateReport",
]
