from typing import Iterable, Optional, Tuple, TypeVar

from geographiclib.geodesic import Geodesic


geod = Geodesic.WGS84

T = TypeVar("T")


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    r = geod.Inverse(lat1, lon1, lat2, lon2)
    return r["s12"]


def nearest(lat: float, lon: float, items: Iterable[T], key) -> Optional[Tuple[T, float]]:
    """Return ``(item, metres)`` for the item closest to (lat, lon).

    ``key`` maps an item to its ``(lat, lon)``.
    """
    best = None
    for item in items:
        ilat, ilon = key(item)
        d = distance_m(lat, lon, ilat, ilon)
        if best is None or d < best[1]:
            best = (item, d)
    return best
