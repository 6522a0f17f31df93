"""Browser geolocation requests and outcome classification."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from streamlit_js_eval import streamlit_js_eval

from src.record import LATITUDE_RANGE, LONGITUDE_RANGE
from src.validators import parse_coordinate


GEOLOCATION_OPTIONS = {
    "enableHighAccuracy": True,
    "timeout": 10000,
    "maximumAge": 60000,
}

UNSUPPORTED = 0
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

ERROR_MESSAGES = {
    UNSUPPORTED: "Geolocation is not supported by this browser",
    PERMISSION_DENIED: "Location access denied. Please enable location access and try again.",
    POSITION_UNAVAILABLE: "Location information is unavailable. Please enter coordinates manually.",
    TIMEOUT: "Location request timed out. Please try again or enter coordinates manually.",
}
GENERIC_ERROR_MESSAGE = "Failed to detect location"

_GET_POSITION_JS = (
    "new Promise((resolve) => {"
    " if (!navigator.geolocation) {"
    " resolve({error: {code: 0, message: 'unsupported'}}); return; }"
    " navigator.geolocation.getCurrentPosition("
    " (p) => resolve({coords: {latitude: p.coords.latitude, longitude: p.coords.longitude,"
    " accuracy: p.coords.accuracy}, timestamp: p.timestamp}),"
    " (e) => resolve({error: {code: e.code, message: e.message}}),"
    f" {json.dumps(GEOLOCATION_OPTIONS)});"
    "})"
)


@dataclass(frozen=True)
class GeolocationOutcome:
    status: str  # "pending" | "detected" | "error"
    latitude: float | None = None
    longitude: float | None = None
    error_code: int | None = None
    message: str = ""

    @property
    def detected(self) -> bool:
        return self.status == "detected"


PENDING = GeolocationOutcome(status="pending")


def _error_outcome(code: Any) -> GeolocationOutcome:
    try:
        code_int = int(code)
    except (TypeError, ValueError):
        code_int = None
    return GeolocationOutcome(
        status="error",
        error_code=code_int,
        message=ERROR_MESSAGES.get(code_int, GENERIC_ERROR_MESSAGE),
    )


def classify_position_response(raw: Any) -> GeolocationOutcome:
    """Map the raw browser response onto a pending, detected or error outcome.

    ``None`` (or an empty value) means the browser has not answered yet.
    """
    if not raw:
        return PENDING
    if not isinstance(raw, dict):
        return _error_outcome(None)
    err = raw.get("error")
    if err:
        code = err.get("code") if isinstance(err, dict) else None
        return _error_outcome(code)
    coords = raw.get("coords") if isinstance(raw.get("coords"), dict) else {}
    lat = parse_coordinate(coords.get("latitude"), LATITUDE_RANGE)
    lng = parse_coordinate(coords.get("longitude"), LONGITUDE_RANGE)
    if lat is None or lng is None:
        return _error_outcome(POSITION_UNAVAILABLE)
    return GeolocationOutcome(status="detected", latitude=lat, longitude=lng, message="Location detected successfully!")


def request_browser_position(request_key: str) -> Any:
    """Ask the browser for one position; returns ``None`` until it answers on a later rerun."""
    return streamlit_js_eval(js_expressions=_GET_POSITION_JS, key=request_key)
