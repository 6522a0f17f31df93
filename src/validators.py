"""Field validation rules for the wizard slides."""

from __future__ import annotations

import math
import re

from src.record import LATITUDE_RANGE, LONGITUDE_RANGE


MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$", re.ASCII)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_name(value: str) -> bool:
    return bool(str(value or "").strip())


def is_valid_mobile(value: str) -> bool:
    return MOBILE_PATTERN.fullmatch(str(value or "").strip()) is not None


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(str(value or "").strip()) is not None


def parse_coordinate(value, bounds: tuple[float, float]) -> float | None:
    """Parse ``value`` as a finite number inside ``bounds``; ``None`` when it is not."""
    text = str(value if value is not None else "").strip()
    if not text:
        return None
    try:
        num = float(text)
    except ValueError:
        return None
    if not math.isfinite(num):
        return None
    lo, hi = bounds
    if num < lo or num > hi:
        return None
    return num


def is_valid_latitude(value) -> bool:
    return parse_coordinate(value, LATITUDE_RANGE) is not None


def is_valid_longitude(value) -> bool:
    return parse_coordinate(value, LONGITUDE_RANGE) is not None


def personal_info_errors(name: str, mobile: str, email: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not is_valid_name(name):
        errors["name"] = "Name is required"
    if not str(mobile or "").strip():
        errors["mobile"] = "Mobile number is required"
    elif not is_valid_mobile(mobile):
        errors["mobile"] = "Please enter a valid 10-digit mobile number"
    if not str(email or "").strip():
        errors["email"] = "Email is required"
    elif not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"
    return errors


def coordinate_errors(latitude: str, longitude: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not str(latitude or "").strip():
        errors["latitude"] = "Latitude is required"
    elif not is_valid_latitude(latitude):
        errors["latitude"] = "Please enter a valid latitude (-90 to 90)"
    if not str(longitude or "").strip():
        errors["longitude"] = "Longitude is required"
    elif not is_valid_longitude(longitude):
        errors["longitude"] = "Please enter a valid longitude (-180 to 180)"
    return errors
