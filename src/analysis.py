"""Placeholder rooftop and rainfall analysis.

None of these numbers come from real data: rooftop area, the rainfall addend,
the per-square-metre cost and the city label are all random draws. The random
source is injected so callers can seed it or script it.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Protocol

import numpy as np

from src.record import AnalysisResult, UserRecord


MOCK_LOCATIONS = (
    "Mumbai, Maharashtra",
    "Bangalore, Karnataka",
    "Chennai, Tamil Nadu",
    "Delhi, Delhi",
    "Hyderabad, Telangana",
    "Pune, Maharashtra",
    "Kolkata, West Bengal",
)
UNKNOWN_LOCATION = "Unknown Location"

BASE_RAINFALL_MM = 600
TROPICAL_LATITUDE_LIMIT = 30.0
TROPICAL_BONUS_MM = 400
TEMPERATE_BONUS_MM = 200
COASTAL_ADDEND_MAX_MM = 300
FALLBACK_RAINFALL_MM = 800

ROOFTOP_AREA_RANGE = (100, 600)
COST_PER_SQM_RANGE = (150, 300)
COLLECTION_EFFICIENCY = 0.8
HIGH_RAINFALL_THRESHOLD_MM = 1000


class RandomSource(Protocol):
    """Subset of ``numpy.random.Generator`` used by the engine."""

    def random(self) -> float: ...

    def integers(self, low: int, high: int) -> int: ...


@dataclass(frozen=True)
class AnalysisOutcome:
    rooftop_area: int
    results: AnalysisResult


class MockAnalysisEngine:
    def __init__(self, rng: RandomSource):
        self._rng = rng

    @classmethod
    def from_seed(cls, seed: int | None = None) -> "MockAnalysisEngine":
        return cls(np.random.default_rng(seed))

    def _integer(self, bounds: tuple[int, int]) -> int:
        low, high = bounds
        return int(self._rng.integers(low, high))

    def rainfall_for(self, latitude: float | None, longitude: float | None) -> int:
        if latitude is None or longitude is None:
            return FALLBACK_RAINFALL_MM
        bonus = TROPICAL_BONUS_MM if abs(float(latitude)) < TROPICAL_LATITUDE_LIMIT else TEMPERATE_BONUS_MM
        coastal = float(self._rng.random()) * COASTAL_ADDEND_MAX_MM
        return int(math.floor(BASE_RAINFALL_MM + bonus + coastal))

    def location_for(self, latitude: float | None, longitude: float | None) -> str:
        # Coordinates only gate the fallback; the label itself is random.
        if latitude is None or longitude is None:
            return UNKNOWN_LOCATION
        return MOCK_LOCATIONS[self._integer((0, len(MOCK_LOCATIONS)))]

    def analyze(self, latitude: float | None, longitude: float | None) -> AnalysisOutcome:
        area = self._integer(ROOFTOP_AREA_RANGE)
        rainfall = self.rainfall_for(latitude, longitude)
        cost = area * self._integer(COST_PER_SQM_RANGE)
        results = AnalysisResult(
            average_rainfall=rainfall,
            recommended_tank_size=int(math.floor(area * COLLECTION_EFFICIENCY * rainfall * 0.001)),
            monthly_storage=int(math.floor(area * rainfall * COLLECTION_EFFICIENCY / 12)),
            construction_cost=int(cost),
            location=self.location_for(latitude, longitude),
        )
        return AnalysisOutcome(rooftop_area=area, results=results)

    def analyze_record(self, record: UserRecord) -> UserRecord:
        outcome = self.analyze(record.latitude, record.longitude)
        return record.merge({"rooftop_area": outcome.rooftop_area, "analysis_results": outcome.results})

    def run_with_delay(
        self,
        record: UserRecord,
        delay_sec: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> UserRecord:
        """Analyze after blocking for ``delay_sec``; there is no way to cancel."""
        if delay_sec > 0:
            sleep(float(delay_sec))
        return self.analyze_record(record)


def results_summary(record: UserRecord) -> dict:
    """Derived figures and recommendation text shown alongside the results."""
    if not record.is_analyzed:
        return {}
    results = record.analysis_results
    area = int(record.rooftop_area)
    rainfall = int(results.average_rainfall)
    high_rainfall = rainfall > HIGH_RAINFALL_THRESHOLD_MM
    return {
        "rooftop_area": area,
        "collection_efficiency_pct": int(round(COLLECTION_EFFICIENCY * 100)),
        "annual_collection_liters": area * rainfall * COLLECTION_EFFICIENCY,
        "cost_per_sqm": int(math.floor(results.construction_cost / max(area, 1))),
        "climate_zone": "High Rainfall" if high_rainfall else "Moderate Rainfall",
        "recommendations": [
            (
                "Primary Recommendation",
                f"Install a {results.recommended_tank_size:,}L capacity tank to capture and store rainwater "
                f"efficiently for your {area} sq meter rooftop.",
            ),
            (
                "Cost-Benefit Analysis",
                f"With an estimated construction cost of ₹{results.construction_cost:,}, you can potentially "
                f"save {results.monthly_storage:,} liters per month on your water bills.",
            ),
            (
                "Maintenance Tips",
                "Regular cleaning of gutters and first-flush diverters will ensure optimal water quality "
                "and system efficiency.",
            ),
        ],
    }
