"""Human-readable place names for a location fix."""

from __future__ import annotations

import re
from typing import Optional

import httpx
import structlog

from .geo import LocationFix

log = structlog.get_logger(__name__)

_CONTINENT = re.compile(
    r"^(asia|europe|africa|north\s+america|south\s+america|antarctica|oceania|australia)$", re.IGNORECASE
)
_ROAD = re.compile(r"(road|street|st\b|route|highway|hwy|drive|dr\b|avenue|ave\b|blvd|lane|ln\b|way|court|ct\b)")
_HOUSE = re.compile(r"(house\s*number|address)")
_LOCALITY = re.compile(r"(barangay|suburb|neighbou?rhood|village|hamlet|district|quarter)")


def _clean(value) -> Optional[str]:
    if not value:
        return None
    text = str(value).strip()
    if not text or _CONTINENT.match(text):
        return None
    return text


def _by_description(items: list, pattern: re.Pattern) -> Optional[str]:
    for item in items:
        if pattern.search(str(item.get("description") or "").lower()):
            return item.get("name")
    return None


def compose_place_name(data: dict) -> str:
    """Street (or suburb), city, province and country from a reverse-geocode response."""
    info = (data.get("localityInfo") or {}).get("informative") or []
    street = _clean(" ".join(p for p in (_by_description(info, _HOUSE), _by_description(info, _ROAD)) if p))
    suburb = _clean(_by_description(info, _LOCALITY))
    city = _clean(data.get("locality") or data.get("city"))

    country_code = str(data.get("countryCode") or "").upper()
    province = data.get("principalSubdivision")
    code = str(data.get("principalSubdivisionCode") or "").split("-")[-1]
    if country_code in ("US", "CA") and code:
        province = code
    country = re.sub(r"\s*\(the\)\s*", "", str(data.get("countryName") or ""), flags=re.IGNORECASE).strip()

    parts = [street or suburb, city, _clean(province), _clean(country)]
    seen: list[str] = []
    for p in parts:
        if p and p not in seen:
            seen.append(p)
    return ", ".join(seen)


class PlaceNameResolver:
    def __init__(self, url: str, *, timeout: float = 5.0, transport: Optional[httpx.BaseTransport] = None):
        self._url = url
        self._timeout = timeout
        self._transport = transport

    def resolve(self, fix: LocationFix) -> Optional[str]:
        """Place name, or None when the service is unset, unreachable, or says nothing useful."""
        if not self._url:
            return None
        params = {"latitude": fix.lat, "longitude": fix.lng, "localityLanguage": "en"}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self._url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("reverse_geocode_failed", error=str(e))
            return None
        return compose_place_name(data) or None

    def label_for(self, fix: LocationFix) -> str:
        return self.resolve(fix) or fix.label()
