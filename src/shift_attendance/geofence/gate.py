from __future__ import annotations

import base64
import binascii
import io
import re
from dataclasses import dataclass
from typing import Optional

import structlog
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import ValidationError
from .geo import Geofence, GeofenceCheck, LocationFix, LocationProvider, acquire_fix, classify

log = structlog.get_logger(__name__)

OUTSIDE_WARNING = "You are outside the required geofence area"

_DATA_URL = re.compile(r"^data:(image/[\w.+-]+);base64,(.+)$", re.DOTALL)


def decode_selfie(data_url: str) -> Image.Image:
    """Decode and verify a `data:image/...;base64,` selfie."""
    m = _DATA_URL.match((data_url or "").strip())
    if not m:
        raise ValidationError("Selfie must be an image data URL", field="image")
    try:
        raw = base64.b64decode(m.group(2), validate=False)
        img = Image.open(io.BytesIO(raw))
        img.verify()
    except (binascii.Error, UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError("Selfie image could not be read", field="image") from e
    return img


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    fix: LocationFix
    check: GeofenceCheck
    warning: Optional[str] = None
    selfie: Optional[str] = None


class SelfieGate:
    """Location is mandatory; being outside the fence is only a warning."""

    def evaluate(
        self,
        provider: LocationProvider,
        fence: Geofence,
        selfie: Optional[str] = None,
    ) -> GateDecision:
        if selfie:
            decode_selfie(selfie)

        # Raises GeolocationUnavailable: the action stays blocked until a fix exists.
        fix = acquire_fix(provider)
        check = classify(fix, fence)
        if check.inside:
            return GateDecision(allowed=True, fix=fix, check=check, selfie=selfie or None)

        log.info("outside_geofence", distance_m=round(check.distance_m, 1), radius_m=fence.radius_m)
        return GateDecision(allowed=True, fix=fix, check=check, warning=OUTSIDE_WARNING, selfie=selfie or None)
