from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from ..common.validators import require_latitude, require_longitude
from ..core.constants import DEFAULT_GEOFENCE_RADIUS_KM, EARTH_RADIUS_KM
from ..core.exceptions import GeofenceNotConfigured, ValidationError


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    @classmethod
    def parse(cls, latitude: Any, longitude: Any) -> "GeoPoint":
        """Build a point from raw input, raising InvalidCoordinate when out of range."""
        return cls(latitude=require_latitude(latitude), longitude=require_longitude(longitude))


@dataclass(frozen=True)
class GeofenceResult:
    within_office: bool
    distance_km: float


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points (haversine, km)."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    # Rounding can push h a hair past 1 for antipodal points.
    h = min(max(h, 0.0), 1.0)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _office_point(office: Any) -> GeoPoint:
    lat = getattr(office, "latitude", None) if office is not None else None
    lng = getattr(office, "longitude", None) if office is not None else None
    if lat is None or lng is None:
        raise GeofenceNotConfigured("Office location is not configured")
    return GeoPoint.parse(lat, lng)


class GeofenceEvaluator:
    """Decides whether a reported position lies inside the office radius.

    Pure: no I/O and no clock reads, so it is safe to call from any thread.
    """

    def __init__(self, default_radius_km: float = DEFAULT_GEOFENCE_RADIUS_KM):
        if default_radius_km <= 0:
            raise ValidationError("Default geofence radius must be positive")
        self._default_radius_km = float(default_radius_km)

    @property
    def default_radius_km(self) -> float:
        return self._default_radius_km

    def evaluate(self, point: GeoPoint, office: Any, radius_km: Optional[float] = None) -> GeofenceResult:
        point = GeoPoint.parse(point.latitude, point.longitude)
        center = _office_point(office)

        if radius_km is None:
            radius_km = getattr(office, "radius_km", None)
        radius = self._default_radius_km if radius_km is None else float(radius_km)
        if not radius > 0:
            raise ValidationError("Geofence radius must be positive")

        distance = distance_km(point, center)
        return GeofenceResult(within_office=distance <= radius, distance_km=distance)


_default = GeofenceEvaluator()


def evaluate(point: GeoPoint, office: Any, radius_km: Optional[float] = None) -> GeofenceResult:
    return _default.evaluate(point, office, radius_km)
