# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no imports from other project modules.

import math
from typing import Sequence

import numpy as np


EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_distances(
    lat: float,
    lon: float,
    lats: Sequence[float],
    lons: Sequence[float],
) -> np.ndarray:
    """
    Great-circle distances from one point to many, in metres.

    Args:
        lat, lon:   Origin in decimal degrees.
        lats, lons: Destinations in decimal degrees (same length).

    Returns:
        1-D float array, one distance per destination, in input order.
    """
    lats_r = np.radians(np.asarray(lats, dtype=float))
    lons_r = np.radians(np.asarray(lons, dtype=float))
    lat_r = math.radians(lat)
    d_lat = lats_r - lat_r
    d_lon = lons_r - math.radians(lon)
    a = np.sin(d_lat / 2) ** 2 + math.cos(lat_r) * np.cos(lats_r) * np.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def path_length(lats: Sequence[float], lons: Sequence[float]) -> float:
    """
    Total length of a polyline in metres (sum of consecutive haversine legs).

    Args:
        lats, lons: Vertices in order, decimal degrees.

    Returns:
        Length in metres; 0.0 for fewer than two vertices.
    """
    lat_arr = np.radians(np.asarray(lats, dtype=float))
    lon_arr = np.radians(np.asarray(lons, dtype=float))
    if lat_arr.size < 2:
        return 0.0
    d_lat = np.diff(lat_arr)
    d_lon = np.diff(lon_arr)
    a = (
        np.sin(d_lat / 2) ** 2
        + np.cos(lat_arr[:-1]) * np.cos(lat_arr[1:]) * np.sin(d_lon / 2) ** 2
    )
    legs = EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return float(legs.sum())


def offset_coordinate(lat: float, lon: float, north_m: float, east_m: float):
    """
    Shift a coordinate by a small metric offset (flat-earth approximation).

    Good to well under a metre for offsets of a few hundred metres; used to
    build simulated GPS tracks.

    Returns:
        (lat, lon) tuple in decimal degrees.
    """
    d_lat = math.degrees(north_m / EARTH_RADIUS_M)
    d_lon = math.degrees(east_m / (EARTH_RADIUS_M * math.cos(math.radians(lat))))
    return lat + d_lat, lon + d_lon
