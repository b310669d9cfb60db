import math

import numpy as np

from nav_sim.domain.entities.geography import GeoPoint

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_to_many(p: GeoPoint, lat_deg: np.ndarray, lng_deg: np.ndarray) -> np.ndarray:
    """Distances in meters from p to every (lat, lng) pair."""
    lat1 = math.radians(p.lat)
    lat2 = np.radians(lat_deg)
    dlat = lat2 - lat1
    dlng = np.radians(lng_deg) - math.radians(p.lng)
    h = np.sin(dlat / 2) ** 2 + math.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def edge_lengths_m(lat_deg: np.ndarray, lng_deg: np.ndarray) -> np.ndarray:
    """Haversine length of each consecutive pair; len(out) == len(lat_deg) - 1."""
    if len(lat_deg) < 2:
        return np.zeros(0)
    lat1, lat2 = np.radians(lat_deg[:-1]), np.radians(lat_deg[1:])
    dlng = np.radians(lng_deg[1:] - lng_deg[:-1])
    h = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """Initial forward azimuth a -> b in [0, 360)."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlng = math.radians(b.lng - a.lng)
    y = math.sin(dlng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
