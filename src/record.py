"""Session record accumulated by the wizard."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from src.imaging import ImagePayload


LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


@dataclass(frozen=True)
class AnalysisResult:
    average_rainfall: int
    recommended_tank_size: int
    monthly_storage: int
    construction_cost: int
    location: str


@dataclass(frozen=True)
class UserRecord:
    """Everything collected in one wizard session.

    Instances are immutable; ``merge`` returns a new record. Coordinates are
    set as a pair and the analysis fields are set together.
    """

    name: str = ""
    mobile: str = ""
    email: str = ""
    latitude: float | None = None
    longitude: float | None = None
    rooftop_image: ImagePayload | None = None
    rooftop_area: int | None = None
    analysis_results: AnalysisResult | None = None

    def __post_init__(self) -> None:
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be set together.")
        if self.latitude is not None:
            lo, hi = LATITUDE_RANGE
            if not lo <= float(self.latitude) <= hi:
                raise ValueError(f"latitude {self.latitude} outside [{lo}, {hi}].")
            lo, hi = LONGITUDE_RANGE
            if not lo <= float(self.longitude) <= hi:
                raise ValueError(f"longitude {self.longitude} outside [{lo}, {hi}].")
        if (self.analysis_results is None) != (self.rooftop_area is None):
            raise ValueError("rooftop_area and analysis_results must be set together.")
        if self.rooftop_image is not None and not isinstance(self.rooftop_image, ImagePayload):
            raise ValueError("rooftop_image must be an encoded ImagePayload.")

    def merge(self, partial: dict[str, Any]) -> "UserRecord":
        unknown = set(partial) - _FIELD_NAMES
        if unknown:
            raise ValueError(f"Unknown record fields: {', '.join(sorted(unknown))}")
        return replace(self, **partial)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_analyzed(self) -> bool:
        return self.analysis_results is not None


_FIELD_NAMES = frozenset(f.name for f in fields(UserRecord))


def empty_record() -> UserRecord:
    return UserRecord()
