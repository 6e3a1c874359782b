from math import atan2, cos, radians, sin, sqrt
from typing import Callable, Dict

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers."""
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def equirectangular_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Planar approximation, accurate enough at city scale."""
    x = radians(lon2 - lon1) * cos(radians((lat1 + lat2) / 2))
    y = radians(lat2 - lat1)
    return EARTH_RADIUS_KM * sqrt(x * x + y * y)


DISTANCE_METRICS: Dict[str, Callable[[float, float, float, float], float]] = {
    "haversine": haversine_km,
    "equirectangular": equirectangular_km,
}


def get_distance_metric(name: str) -> Callable[[float, float, float, float], float]:
    try:
        return DISTANCE_METRICS[name]
    except KeyError:
        raise ValueError(f"Unknown distance metric: {name}")


def distance_between(source, target, metric: Callable = haversine_km) -> float:
    """Distance between two records exposing ``latitude``/``longitude``."""
    return metric(source.latitude, source.longitude, target.latitude, target.longitude)
