# src/services/utils/geo_utils.py
"""
Геодезические расчёты по сферической модели Земли.
"""

from __future__ import annotations

import math
from typing import Iterable

EARTH_RADIUS_KM = 6371.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Вычисляет расстояние между двумя точками (в км) по формуле Haversine.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Расстояние между точками в метрах."""
    return calculate_distance(lat1, lon1, lat2, lon2) * 1000.0


def path_length_km(points: Iterable[tuple[float, float]]) -> float:
    """Длина ломаной по последовательности (lat, lon) в км."""
    total = 0.0
    prev: tuple[float, float] | None = None
    for point in points:
        if prev is not None:
            total += calculate_distance(prev[0], prev[1], point[0], point[1])
        prev = point
    return total
