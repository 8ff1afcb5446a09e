"""
Mapping of upstream weather API records onto canonical readings.

The station API has changed field names across versions (v2.1 names,
v1.0 names, daily-report names). Each canonical field has an explicit,
ordered list of upstream candidates; the first candidate present with a
non-null value is used.
"""

from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from observatory.schemas.climate import Reading
from observatory.utils.logging_config import get_logger
from observatory.utils.parsing import parse_number, parse_timestamp

logger = get_logger(__name__)


# Timestamp: API v2.1 local time first, daily reports use 'dia'
TIMESTAMP_CANDIDATES: Tuple[str, ...] = ('fecha_loja', 'dia', 'timestamp')

# Canonical field -> upstream names, highest priority first
FIELD_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    'temperature': ('temp_aire', 'temp_promedio', 'temp_exterior', 'temperatura', 'temperature'),
    'humidity': ('hum_relativa', 'hum_relativa_promedio', 'hum_exterior', 'humedad', 'humidity'),
    'pressure': ('presion_bar', 'presion_promedio', 'presion', 'pressure'),
    'wind_speed': ('viento_vel', 'viento_promedio', 'viento_velocidad', 'vel_viento', 'wind_speed'),
    'wind_direction': ('viento_dir', 'viento_direccion', 'dir_viento', 'wind_direction'),
    'rainfall': ('lluvia_mm', 'lluvia_acumulada', 'lluvia_intensidad_mm', 'precipitacion', 'rainfall'),
    'solar_radiation': ('rad_solar', 'radiacion_solar', 'sol_rad', 'solar_radiation'),
    'uv_index': ('indice_uv', 'uv_index', 'uv'),
    'pm25': ('pm_2p5', 'pm25_promedio', 'pm2_5', 'pm25'),
    'pm10': ('pm_10', 'pm10_promedio', 'pm10'),
    'battery_voltage': ('voltaje_bateria', 'voltaje', 'battery', 'battery_voltage'),
}

# Keys under which some endpoints wrap the record list
PAYLOAD_WRAPPER_KEYS: Tuple[str, ...] = ('data', 'results')


def pick_candidate(raw: Mapping, candidates: Tuple[str, ...]) -> Any:
    """
    First non-null value among candidate keys, in priority order.

    Returns None when no candidate is present.
    """
    for key in candidates:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def normalize_reading(raw: Mapping) -> Reading:
    """
    Map one upstream record onto a canonical Reading.

    Numbers are parsed with decimal-comma support; fields that are missing
    or unreadable are None. An unreadable timestamp also becomes None and
    the reading is later left out of any aggregation.

    Args:
        raw: Upstream record

    Returns:
        Canonical Reading
    """
    values: Dict[str, Optional[float]] = {
        field: parse_number(pick_candidate(raw, candidates))
        for field, candidates in FIELD_CANDIDATES.items()
    }
    timestamp = parse_timestamp(pick_candidate(raw, TIMESTAMP_CANDIDATES))

    return Reading(timestamp=timestamp, **values)


def normalize_payload(payload: Any) -> List[Reading]:
    """
    Normalize an upstream response body into canonical readings.

    Accepts a bare list of records or a dict wrapping the list under
    'data' or 'results'. Items that are not records are skipped.

    Args:
        payload: Decoded JSON body

    Returns:
        List of readings (empty for unrecognised shapes)
    """
    records = payload
    if isinstance(payload, Mapping):
        records = None
        for key in PAYLOAD_WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                records = payload[key]
                break

    if not isinstance(records, list):
        logger.warning(f"Unexpected payload structure: {type(payload).__name__}")
        return []

    readings = []
    skipped = 0
    for item in records:
        if not isinstance(item, Mapping):
            skipped += 1
            continue
        readings.append(normalize_reading(item))

    if skipped:
        logger.warning(f"Skipped {skipped} non-record items in payload")

    logger.debug(f"Normalized {len(readings)} readings")
    return readings
