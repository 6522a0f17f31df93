from __future__ import annotations

from src.analysis import (
    FALLBACK_RAINFALL_MM,
    MOCK_LOCATIONS,
    UNKNOWN_LOCATION,
    MockAnalysisEngine,
    results_summary,
)
from src.record import UserRecord


def test_scripted_draws_give_exact_results(scripted_random):
    # area=250, coastal addend 0.5*300=150, cost/sqm=200, location index 0
    rng = scripted_random(unit_values=[0.5], integer_values=[250, 200, 0])
    outcome = MockAnalysisEngine(rng).analyze(19.076, 72.8777)

    assert outcome.rooftop_area == 250
    results = outcome.results
    assert results.average_rainfall == 1150
    assert results.recommended_tank_size == 230
    assert results.monthly_storage == 19166
    assert results.construction_cost == 50000
    assert results.location == "Mumbai, Maharashtra"
    assert rng.integer_calls == [(100, 600), (150, 300), (0, len(MOCK_LOCATIONS))]


def test_temperate_latitude_gets_smaller_bonus(scripted_random):
    rng = scripted_random(unit_values=[0.0], integer_values=[100, 150, 6])
    outcome = MockAnalysisEngine(rng).analyze(45.0, 10.0)
    assert outcome.results.average_rainfall == 800
    assert outcome.results.location == "Kolkata, West Bengal"


def test_mumbai_rainfall_stays_within_tropical_band():
    engine = MockAnalysisEngine.from_seed(1234)
    for _ in range(200):
        outcome = engine.analyze(19.0760, 72.8777)
        assert 1000 <= outcome.results.average_rainfall < 1300
        assert 100 <= outcome.rooftop_area < 600
        assert outcome.results.location in MOCK_LOCATIONS
        cost_per_sqm = outcome.results.construction_cost / outcome.rooftop_area
        assert 150 <= cost_per_sqm < 300


def test_same_seed_gives_same_results():
    first = MockAnalysisEngine.from_seed(7).analyze(12.97, 77.59)
    second = MockAnalysisEngine.from_seed(7).analyze(12.97, 77.59)
    assert first == second


def test_missing_coordinates_use_fallbacks(scripted_random):
    rng = scripted_random(unit_values=[], integer_values=[300, 200])
    outcome = MockAnalysisEngine(rng).analyze(None, None)
    assert outcome.results.average_rainfall == FALLBACK_RAINFALL_MM
    assert outcome.results.location == UNKNOWN_LOCATION


def test_zero_latitude_is_treated_as_a_real_coordinate(scripted_random):
    rng = scripted_random(unit_values=[0.0], integer_values=[100, 150, 2])
    outcome = MockAnalysisEngine(rng).analyze(0.0, 0.0)
    assert outcome.results.average_rainfall == 1000
    assert outcome.results.location == "Chennai, Tamil Nadu"


def test_run_with_delay_sleeps_then_populates_record(scripted_random):
    slept: list[float] = []
    rng = scripted_random(unit_values=[0.5], integer_values=[250, 200, 0])
    record = UserRecord(name="Asha Rao", latitude=19.076, longitude=72.8777)

    analyzed = MockAnalysisEngine(rng).run_with_delay(record, 2.0, sleep=slept.append)

    assert slept == [2.0]
    assert analyzed.rooftop_area == 250
    assert analyzed.analysis_results is not None
    assert analyzed.name == "Asha Rao"
    assert record.analysis_results is None


def test_results_summary_derived_figures(analyzed_record):
    summary = results_summary(analyzed_record)
    assert summary["collection_efficiency_pct"] == 80
    assert summary["annual_collection_liters"] == 250 * 1150 * 0.8
    assert summary["cost_per_sqm"] == 200
    assert summary["climate_zone"] == "High Rainfall"
    assert [heading for heading, _ in summary["recommendations"]] == [
        "Primary Recommendation",
        "Cost-Benefit Analysis",
        "Maintenance Tips",
    ]


def test_results_summary_empty_before_analysis():
    assert results_summary(UserRecord()) == {}
