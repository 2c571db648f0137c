from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from shift_attendance.core.exceptions import GeolocationUnavailable, ValidationError
from shift_attendance.geofence.gate import OUTSIDE_WARNING, SelfieGate, decode_selfie
from shift_attendance.geofence.geo import (
    DEFAULT_ATTEMPTS,
    Geofence,
    LocationFix,
    ReportedLocationProvider,
    acquire_fix,
    classify,
    haversine_m,
)

FENCE = Geofence(lat=10.0, lng=106.0, radius_m=100.0)


class ScriptedProvider:
    """Answers each attempt from a list: a fix, None, or an exception to raise."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests = []

    def get_position(self, *, high_accuracy, timeout_s, max_age_s):
        self.requests.append((high_accuracy, timeout_s, max_age_s))
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


def test_haversine_distance():
    # One thousandth of a degree of latitude is about 111 m.
    assert haversine_m(10.0, 106.0, 10.001, 106.0) == pytest.approx(111.2, abs=0.5)
    assert haversine_m(10.0, 106.0, 10.0, 106.0) == 0


def test_classify_boundary_counts_as_inside():
    fix = LocationFix(lat=10.0009, lng=106.0)
    distance = classify(fix, FENCE).distance_m

    assert classify(fix, Geofence(lat=10.0, lng=106.0, radius_m=distance)).inside
    assert not classify(LocationFix(lat=10.00135, lng=106.0), FENCE).inside


def test_acquire_fix_falls_back_through_attempts():
    fix = LocationFix(lat=10.0, lng=106.0)
    provider = ScriptedProvider(TimeoutError("slow"), GeolocationUnavailable("denied"), fix)

    assert acquire_fix(provider) is fix
    assert provider.requests == [(True, 8.0, 0.0), (False, 12.0, 600.0), (True, 20.0, 0.0)]


def test_acquire_fix_gives_up_after_all_attempts():
    provider = ScriptedProvider(None, None, None)

    with pytest.raises(GeolocationUnavailable):
        acquire_fix(provider)
    assert len(provider.requests) == len(DEFAULT_ATTEMPTS)


def test_stale_reported_fix_is_only_accepted_from_cache():
    now = datetime(2025, 10, 16, 10, 0)
    provider = ReportedLocationProvider.from_payload(
        {"lat": 10.0, "lng": 106.0, "accuracy": 12, "capturedAt": (now - timedelta(minutes=5)).isoformat()},
        now=now,
    )

    with pytest.raises(GeolocationUnavailable):
        provider.get_position(high_accuracy=True, timeout_s=8.0, max_age_s=0.0)
    fix = provider.get_position(high_accuracy=False, timeout_s=12.0, max_age_s=600.0)
    assert fix.accuracy_m == 12.0


@pytest.mark.parametrize("payload", [None, {}, {"lat": "x", "lng": 1}, {"lat": 95, "lng": 0}])
def test_unusable_reported_position(payload):
    provider = ReportedLocationProvider.from_payload(payload)

    with pytest.raises(GeolocationUnavailable):
        acquire_fix(provider)


def test_decode_selfie(selfie):
    image = decode_selfie(selfie)

    assert image.format == "PNG"


@pytest.mark.parametrize("value", ["", "hello", "data:image/png;base64,!!!!", "data:text/plain;base64,aGk="])
def test_decode_selfie_rejects_garbage(value):
    with pytest.raises(ValidationError) as exc:
        decode_selfie(value)

    assert exc.value.field == "image"


def test_gate_inside_fence(selfie):
    decision = SelfieGate().evaluate(ReportedLocationProvider(LocationFix(lat=10.0, lng=106.0)), FENCE, selfie)

    assert decision.allowed
    assert decision.warning is None
    assert decision.selfie == selfie


def test_gate_outside_fence_warns_but_allows():
    decision = SelfieGate().evaluate(ReportedLocationProvider(LocationFix(lat=10.01, lng=106.0)), FENCE)

    assert decision.allowed
    assert decision.warning == OUTSIDE_WARNING
    assert decision.check.distance_m > 1000


def test_gate_checks_selfie_before_location():
    provider = ScriptedProvider()

    with pytest.raises(ValidationError):
        SelfieGate().evaluate(provider, FENCE, "data:image/png;base64,AAAA")
    assert provider.requests == []
