"""
Derived agrometeorological indices for station data.

This module provides closed-form physical calculations used by the daily
aggregation step:
- Extraterrestrial radiation (Ra) from latitude and day of year
- Reference Evapotranspiration (ET₀) using Hargreaves method
- Dew point (simplified Magnus approximation)
- Heat index (NOAA regression)
- Wind rose and dominant wind direction over 8 compass sectors
- PM2.5 air-quality category

References:
- Hargreaves & Samani (1985): Reference crop evapotranspiration from temperature
- Allen et al. (1998): FAO Irrigation and Drainage Paper No. 56
- Rothfusz (1990): The heat index equation, NWS Technical Attachment SR 90-23
"""

import math
from datetime import date
from typing import Dict, Iterable, Optional, Union


# Base temperatures for degree-day indices (°C)
GDD_BASE_TEMP = 10.0
COMFORT_BASE_TEMP = 18.0  # HDD / CDD

# Heat index is only defined above these thresholds
HEAT_INDEX_MIN_TEMP = 27.0
HEAT_INDEX_MIN_RH = 40.0

# NOAA heat index regression coefficients (Celsius form)
HEAT_INDEX_COEFFICIENTS = (
    -8.78469475556,
    1.61139411,
    2.33854883889,
    -0.14611605,
    -0.012308094,
    -0.0164248277778,
    0.002211732,
    0.00072546,
    -0.000003582,
)

# Compass sectors, 45° wide, centred on the cardinal/intercardinal points
COMPASS_SECTORS = ('N', 'NE', 'E', 'SE', 'S', 'SW', 'W', 'NW')

# US EPA PM2.5 breakpoints (µg/m³, 24-hour mean)
PM25_CATEGORIES = (
    (12.0, 'Good'),
    (35.4, 'Moderate'),
    (55.4, 'Unhealthy for Sensitive Groups'),
    (150.4, 'Unhealthy'),
)
PM25_WORST_CATEGORY = 'Hazardous'


def calculate_gdd(temp_max: float, temp_min: float, base_temp: float = GDD_BASE_TEMP) -> float:
    """
    Calculate Growing Degree Days using the average method.

    GDD = max(0, ((Tmax + Tmin) / 2) - Tbase)

    Example:
        >>> calculate_gdd(32.0, 22.0)
        17.0
    """
    return max(0.0, (temp_max + temp_min) / 2 - base_temp)


def calculate_hdd(temp_avg: float, base_temp: float = COMFORT_BASE_TEMP) -> float:
    """Heating degree-days: max(0, Tbase - Tavg)."""
    return max(0.0, base_temp - temp_avg)


def calculate_cdd(temp_avg: float, base_temp: float = COMFORT_BASE_TEMP) -> float:
    """Cooling degree-days: max(0, Tavg - Tbase)."""
    return max(0.0, temp_avg - base_temp)


def day_of_year(day: Union[str, date]) -> int:
    """
    Day of year (1-366) for a local calendar day.

    The day string is read as a calendar date, so no time zone conversion
    can shift it across a year boundary.

    Args:
        day: Local calendar day as 'YYYY-MM-DD' or a date

    Returns:
        1-based ordinal day within the year

    Example:
        >>> day_of_year('2024-12-31')
        366
    """
    if isinstance(day, str):
        day = date.fromisoformat(day[:10])
    return day.timetuple().tm_yday


def calculate_extraterrestrial_radiation(
    latitude: float,
    julian_day: int
) -> float:
    """
    Calculate daily extraterrestrial radiation (Ra).

    Used in Hargreaves ET₀ equation.
    Based on FAO-56 methodology (Allen et al., 1998).

    Args:
        latitude: Latitude in decimal degrees
        julian_day: Day of year (1-365/366)

    Returns:
        Ra in MJ/m²/day, never negative

    Reference:
        Allen, R.G., Pereira, L.S., Raes, D., Smith, M. (1998).
        FAO Irrigation and Drainage Paper No. 56: Crop Evapotranspiration.
    """
    # Inverse relative distance Earth-Sun
    dr = 1 + 0.033 * math.cos((2 * math.pi / 365) * julian_day)

    # Solar declination (radians)
    declination = 0.409 * math.sin((2 * math.pi / 365) * julian_day - 1.39)

    lat_rad = latitude * math.pi / 180.0

    # Sunset hour angle (radians); clamped for polar day / polar night
    ws_arg = -math.tan(lat_rad) * math.tan(declination)
    ws = math.acos(max(-1.0, min(1.0, ws_arg)))

    # Solar constant
    Gsc = 0.0820  # MJ/m²/min

    Ra = (24 * 60 / math.pi) * Gsc * dr * (
        ws * math.sin(lat_rad) * math.sin(declination) +
        math.cos(lat_rad) * math.cos(declination) * math.sin(ws)
    )

    return max(0.0, Ra)


def calculate_et0_hargreaves(
    temp_mean: float,
    temp_max: float,
    temp_min: float,
    ra: float
) -> float:
    """
    Calculate reference evapotranspiration using Hargreaves method.

    ET₀ = 0.0023 × (Tmean + 17.8) × (Tmax - Tmin)^0.5 × Ra

    Args:
        temp_mean: Daily mean temperature (°C)
        temp_max: Daily maximum temperature (°C)
        temp_min: Daily minimum temperature (°C)
        ra: Extraterrestrial radiation (MJ/m²/day)

    Returns:
        ET₀, or 0 when the temperature range or Ra is not positive

    Reference:
        Hargreaves, G.H., Samani, Z.A. (1985). Reference crop
        evapotranspiration from temperature. Applied Engineering
        in Agriculture, 1(2), 96-99.
    """
    temp_diff = temp_max - temp_min
    if temp_diff <= 0 or ra <= 0:
        return 0.0

    return 0.0023 * (temp_mean + 17.8) * math.sqrt(temp_diff) * ra


def calculate_dew_point(
    temperature: Optional[float],
    humidity: Optional[float]
) -> Optional[float]:
    """
    Dew point using the simplified Magnus approximation.

    Td = T - ((100 - RH) / 5)

    Reasonable for RH above ~50%. Returns None if either input is missing.
    """
    if temperature is None or humidity is None:
        return None
    return temperature - ((100 - humidity) / 5)


def calculate_heat_index(
    temperature: Optional[float],
    humidity: Optional[float]
) -> Optional[float]:
    """
    Heat index (apparent temperature) from the NOAA regression.

    Only defined when T > 27°C and RH > 40%; returns None outside that
    envelope or when an input is missing.

    Args:
        temperature: Air temperature (°C)
        humidity: Relative humidity (%)

    Returns:
        Heat index in °C, or None
    """
    if temperature is None or humidity is None:
        return None
    if temperature <= HEAT_INDEX_MIN_TEMP or humidity <= HEAT_INDEX_MIN_RH:
        return None

    c1, c2, c3, c4, c5, c6, c7, c8, c9 = HEAT_INDEX_COEFFICIENTS
    T = temperature
    RH = humidity

    return (
        c1 + c2 * T + c3 * RH + c4 * T * RH +
        c5 * T * T + c6 * RH * RH + c7 * T * T * RH +
        c8 * T * RH * RH + c9 * T * T * RH * RH
    )


def normalize_direction(degrees: float) -> float:
    """Map any angle onto [0, 360)."""
    return ((degrees % 360) + 360) % 360


def compass_sector(degrees: float) -> str:
    """
    8-point compass sector for a wind direction.

    N covers [337.5, 360) and [0, 22.5); each other sector is 45° wide.
    """
    deg = normalize_direction(degrees)
    index = int(((deg + 22.5) % 360) // 45)
    return COMPASS_SECTORS[index]


def _sector_counts(directions: Iterable[Optional[float]]) -> Dict[str, int]:
    """Samples per compass sector, keyed in order of first appearance."""
    counts: Dict[str, int] = {}
    for direction in directions:
        if direction is None or not math.isfinite(direction):
            continue
        sector = compass_sector(direction)
        counts[sector] = counts.get(sector, 0) + 1
    return counts


def wind_rose(directions: Iterable[Optional[float]]) -> Dict[str, float]:
    """
    Frequency distribution of wind directions over the 8 compass sectors.

    Args:
        directions: Wind directions in degrees; None, NaN and infinities
            are skipped

    Returns:
        Percentage of samples per sector (one decimal), all 8 sectors in
        N..NW order; empty when there are no valid samples

    Example:
        >>> wind_rose([0.0, 90.0, 95.0, 180.0])['E']
        50.0
    """
    counts = _sector_counts(directions)
    total = sum(counts.values())
    if total == 0:
        return {}
    return {
        sector: round(counts.get(sector, 0) / total * 100, 1)
        for sector in COMPASS_SECTORS
    }


def dominant_wind_direction(directions: Iterable[Optional[float]]) -> Optional[str]:
    """
    Most frequent compass sector among wind direction samples.

    On an exact tie the sector whose first sample appears earliest in the
    input wins.

    Args:
        directions: Wind directions in degrees; None, NaN and infinities
            are skipped

    Returns:
        Sector code ('N', 'NE', ...), or None when there are no valid samples
    """
    counts = _sector_counts(directions)
    if not counts:
        return None

    dominant = None
    max_count = 0
    # dicts keep first-insertion order, so strict > keeps the earliest sector
    for sector, count in counts.items():
        if count > max_count:
            dominant = sector
            max_count = count
    return dominant


def classify_pm25(pm25: Optional[float]) -> Optional[str]:
    """
    Air-quality category for a PM2.5 concentration (US EPA breakpoints).

    Example:
        >>> classify_pm25(20.0)
        'Moderate'
    """
    if pm25 is None:
        return None
    for upper, label in PM25_CATEGORIES:
        if pm25 <= upper:
            return label
    return PM25_WORST_CATEGORY
