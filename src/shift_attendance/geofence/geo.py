from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Sequence

import structlog

from ..core.exceptions import GeolocationUnavailable

log = structlog.get_logger(__name__)

EARTH_RADIUS_M = 6371000.0

LOCATION_REQUIRED = "Waiting for location... please enable location and try again."


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = math.radians(lat2 - lat1)
    dl = math.radians(lng2 - lng1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


@dataclass(frozen=True)
class Geofence:
    lat: float
    lng: float
    radius_m: float

    @classmethod
    def from_settings(cls, value: dict) -> "Geofence":
        return cls(lat=float(value["lat"]), lng=float(value["lng"]), radius_m=float(value["radius_m"]))


@dataclass(frozen=True)
class LocationFix:
    lat: float
    lng: float
    accuracy_m: Optional[float] = None
    captured_at: Optional[datetime] = None

    def label(self) -> str:
        return f"{self.lat:.5f}, {self.lng:.5f}"

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class GeofenceCheck:
    inside: bool
    distance_m: float


def classify(fix: LocationFix, fence: Geofence) -> GeofenceCheck:
    distance = haversine_m(fix.lat, fix.lng, fence.lat, fence.lng)
    return GeofenceCheck(inside=distance <= fence.radius_m, distance_m=distance)


@dataclass(frozen=True)
class FixAttempt:
    high_accuracy: bool
    timeout_s: float
    max_age_s: float


# Fresh precise fix, then a cached coarse one, then a longer precise wait.
DEFAULT_ATTEMPTS: Sequence[FixAttempt] = (
    FixAttempt(high_accuracy=True, timeout_s=8.0, max_age_s=0.0),
    FixAttempt(high_accuracy=False, timeout_s=12.0, max_age_s=600.0),
    FixAttempt(high_accuracy=True, timeout_s=20.0, max_age_s=0.0),
)


class LocationProvider(Protocol):
    def get_position(self, *, high_accuracy: bool, timeout_s: float, max_age_s: float) -> Optional[LocationFix]:
        """Return a fix, or None / raise GeolocationUnavailable when none is available."""

        raise NotImplementedError


def acquire_fix(provider: LocationProvider, attempts: Sequence[FixAttempt] = DEFAULT_ATTEMPTS) -> LocationFix:
    for n, attempt in enumerate(attempts, start=1):
        try:
            fix = provider.get_position(
                high_accuracy=attempt.high_accuracy,
                timeout_s=attempt.timeout_s,
                max_age_s=attempt.max_age_s,
            )
        except (GeolocationUnavailable, TimeoutError) as e:
            log.info("location_attempt_failed", attempt=n, error=str(e))
            continue
        if fix is not None:
            return fix
    raise GeolocationUnavailable(LOCATION_REQUIRED)


class ReportedLocationProvider:
    """Position reported by the client device with the request.

    The device does the actual acquisition; a reported fix is accepted when it
    is no older than the attempt's cache age, or than its timeout for attempts
    that demand a fresh reading.
    """

    def __init__(self, fix: Optional[LocationFix], *, now: Optional[datetime] = None):
        self._fix = fix
        self._now = now

    @classmethod
    def from_payload(cls, data: Optional[dict], *, now: Optional[datetime] = None) -> "ReportedLocationProvider":
        if not data or data.get("lat") is None or data.get("lng") is None:
            return cls(None, now=now)
        try:
            lat, lng = float(data["lat"]), float(data["lng"])
        except (TypeError, ValueError):
            return cls(None, now=now)
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
            return cls(None, now=now)
        captured_at = None
        if data.get("capturedAt"):
            try:
                captured_at = datetime.fromisoformat(str(data["capturedAt"]))
            except ValueError:
                captured_at = None
        accuracy = data.get("accuracy")
        return cls(
            LocationFix(lat=lat, lng=lng, accuracy_m=float(accuracy) if accuracy is not None else None, captured_at=captured_at),
            now=now,
        )

    def get_position(self, *, high_accuracy: bool, timeout_s: float, max_age_s: float) -> Optional[LocationFix]:
        if self._fix is None:
            raise GeolocationUnavailable("No position reported")
        if self._fix.captured_at is None or self._now is None:
            return self._fix
        age = (self._now - self._fix.captured_at).total_seconds()
        if age > max(max_age_s, timeout_s):
            raise GeolocationUnavailable("Reported position is stale")
        return self._fix
