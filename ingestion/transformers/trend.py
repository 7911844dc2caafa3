"""
ISS movement derived from the two most recent telemetry records
"""

import math
from typing import Any, Optional, Sequence

from schemas.records import FetchRecordOut, TrendDerivation

EARTH_RADIUS_KM = 6371.0
MOVEMENT_THRESHOLD_KM = 0.1


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def extract_float(payload: Any, field: str) -> Optional[float]:
    """Numeric field of a payload; numeric strings count, booleans do not"""
    if not isinstance(payload, dict):
        return None
    value = payload.get(field)
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def derive_trend(records: Sequence[FetchRecordOut]) -> TrendDerivation:
    """
    Movement between the two newest records.

    Args:
        records: Telemetry records, newest first

    Returns:
        TrendDerivation; the empty zero-state when fewer than two records exist
    """
    if len(records) < 2:
        return TrendDerivation.empty()

    newer, older = records[0], records[1]

    from_lat = extract_float(older.payload, "latitude")
    from_lon = extract_float(older.payload, "longitude")
    to_lat = extract_float(newer.payload, "latitude")
    to_lon = extract_float(newer.payload, "longitude")

    delta_km = 0.0
    if None not in (from_lat, from_lon, to_lat, to_lon):
        delta_km = haversine_km(from_lat, from_lon, to_lat, to_lon)

    return TrendDerivation(
        movement=delta_km > MOVEMENT_THRESHOLD_KM,
        delta_km=delta_km,
        dt_sec=(newer.fetched_at - older.fetched_at).total_seconds(),
        velocity_kmh=extract_float(newer.payload, "velocity"),
        from_time=older.fetched_at,
        to_time=newer.fetched_at,
        from_lat=from_lat,
        from_lon=from_lon,
        to_lat=to_lat,
        to_lon=to_lon,
    )
