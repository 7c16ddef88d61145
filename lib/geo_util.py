import math

_EARTH_RADIUS_KM = 6371.0


def round_coord(value: float, decimals: int = 4) -> float:
    """Round a coordinate; 4 decimals is roughly 11 m and absorbs GPS jitter."""
    return round(value, decimals)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * _EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def within_radius_deg(lat1: float, lon1: float, lat2: float, lon2: float, radius_deg: float) -> bool:
    return math.hypot(lat2 - lat1, lon2 - lon1) <= radius_deg
