"""
Physical plausibility checks for a day of station readings.

This is a coarse sanity check over hard limits, not a statistical outlier
detector. Each category records at most one flag per day: the first
violation found for that category.
"""

from typing import Callable, Iterable, List, Optional, Tuple

from observatory.schemas.climate import QualityFlags, Reading


# (attribute, [(predicate, flag code), ...]) in reporting order
QUALITY_RULES: Tuple[Tuple[str, Tuple[Tuple[Callable[[float], bool], str], ...]], ...] = (
    ('temperature', (
        (lambda v: v > 50, 'T>50°C'),
        (lambda v: v < -20, 'T<-20°C'),
    )),
    ('humidity', (
        (lambda v: v > 100, 'HR>100%'),
        (lambda v: v < 0, 'HR<0%'),
    )),
    ('pressure', (
        (lambda v: v < 500, 'P<500hPa'),
    )),
    ('wind_speed', (
        (lambda v: v < 0, 'Viento<0'),
    )),
)


def _first_violation(readings: List[Reading], attribute: str, checks) -> Optional[str]:
    for reading in readings:
        value = getattr(reading, attribute, None)
        if value is None:
            continue
        for predicate, code in checks:
            if predicate(value):
                return code
    return None


def validate_daily(readings: Iterable[Reading]) -> QualityFlags:
    """
    Scan a day's readings for physically implausible values.

    Limits:
    - Temperature: > 50°C or < -20°C
    - Relative humidity: > 100% or < 0%
    - Pressure: < 500 hPa
    - Wind speed: < 0

    Args:
        readings: Readings belonging to one day

    Returns:
        QualityFlags with one code per violated category
    """
    readings = list(readings)
    flags = []
    for attribute, checks in QUALITY_RULES:
        code = _first_violation(readings, attribute, checks)
        if code is not None:
            flags.append(code)

    return QualityFlags(has_outliers=len(flags) > 0, flags=flags)
