from __future__ import annotations

from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from src.imaging import ImagePayload
from src.slides import RooftopImageSlide
from src.wizard import Phase, Step


APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


@pytest.fixture(autouse=True)
def _fast_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("RWH_STORAGE_ROOT", str(tmp_path))
    monkeypatch.setenv("RWH_ANALYSIS_DELAY_SEC", "0")
    monkeypatch.setenv("RWH_IMAGE_ANALYSIS_DELAY_SEC", "0")
    monkeypatch.setenv("RWH_AUTO_DETECT_LOCATION", "false")
    monkeypatch.setenv("RWH_RANDOM_SEED", "11")


def _assert_no_app_exceptions(at: AppTest) -> None:
    assert len(at.exception) == 0


def _run(at: AppTest) -> None:
    at.run(timeout=60)
    _assert_no_app_exceptions(at)


def _phase(at: AppTest) -> Phase:
    return at.session_state["wizard_state"].phase


def _fill_personal(at: AppTest, mobile: str = "9876543210") -> None:
    at.text_input(key="personal_name").set_value("Asha Rao")
    at.text_input(key="personal_mobile").set_value(mobile)
    at.text_input(key="personal_email").set_value("asha@example.com")
    at.button(key="personal_continue").click()
    _run(at)


def _drive_to_results(at: AppTest, png_bytes: bytes) -> None:
    _run(at)
    at.button(key="start_assessment").click()
    _run(at)
    _fill_personal(at)

    at.text_input(key="location_latitude").set_value("19.0760")
    at.text_input(key="location_longitude").set_value("72.8777")
    at.button(key="location_continue").click()
    _run(at)
    assert at.session_state["wizard_state"].current_step is Step.ROOFTOP_IMAGE

    at.session_state["slide_draft"] = RooftopImageSlide(image=ImagePayload(mime_type="image/png", data=png_bytes))
    _run(at)
    at.button(key="analyze_rooftop").click()
    _run(at)


def test_app_initial_run_has_no_exceptions():
    at = AppTest.from_file(APP_PATH)
    _run(at)
    assert _phase(at) is Phase.LANDING
    assert at.button(key="start_assessment").label == "Start Assessment"


def test_invalid_mobile_blocks_first_step():
    at = AppTest.from_file(APP_PATH)
    _run(at)
    at.button(key="start_assessment").click()
    _run(at)

    _fill_personal(at, mobile="12345")

    state = at.session_state["wizard_state"]
    assert state.current_step is Step.PERSONAL_INFO
    assert state.record.name == ""
    assert "Please enter a valid 10-digit mobile number" in [e.value for e in at.error]


def test_back_from_location_keeps_entered_details():
    at = AppTest.from_file(APP_PATH)
    _run(at)
    at.button(key="start_assessment").click()
    _run(at)
    _fill_personal(at)
    assert at.session_state["wizard_state"].current_step is Step.LOCATION

    at.button(key="wizard_back").click()
    _run(at)
    assert at.session_state["wizard_state"].current_step is Step.PERSONAL_INFO
    assert at.text_input(key="personal_name").value == "Asha Rao"

    at.button(key="wizard_back").click()
    _run(at)
    assert _phase(at) is Phase.LANDING


def test_full_assessment_reaches_results_and_builds_report(png_bytes):
    at = AppTest.from_file(APP_PATH)
    _drive_to_results(at, png_bytes)

    assert _phase(at) is Phase.RESULTS
    record = at.session_state["wizard_state"].record
    assert record.name == "Asha Rao"
    assert (record.latitude, record.longitude) == (19.076, 72.8777)
    assert record.analysis_results is not None
    assert 1000 <= record.analysis_results.average_rainfall < 1300

    at.button(key="generate_report").click()
    _run(at)
    artifact = at.session_state["report_artifact"]
    assert artifact is not None
    assert artifact.filename == "rainwater-harvesting-report-Asha-Rao.pdf"
    assert artifact.pdf_bytes.startswith(b"%PDF")


def test_start_over_returns_to_landing(png_bytes):
    at = AppTest.from_file(APP_PATH)
    _drive_to_results(at, png_bytes)
    at.button(key="generate_report").click()
    _run(at)

    at.button(key="start_over").click()
    _run(at)

    assert _phase(at) is Phase.LANDING
    state = at.session_state["wizard_state"]
    assert state.record.analysis_results is None
    assert state.record.name == ""
    assert at.session_state["report_artifact"] is None


def _widgets_missing_help(at: AppTest) -> list[str]:
    widgets = list(at.text_input) + list(at.button) + list(at.number_input)
    return [
        getattr(widget, "label", "<no label>")
        for widget in widgets
        if not isinstance(getattr(widget, "help", None), str) or not str(widget.help).strip()
    ]


def test_interactive_widgets_expose_help_tooltips(png_bytes):
    at = AppTest.from_file(APP_PATH)
    _run(at)
    assert not _widgets_missing_help(at), "landing"

    at.button(key="start_assessment").click()
    _run(at)
    assert not _widgets_missing_help(at), "personal information"

    _fill_personal(at)
    assert not _widgets_missing_help(at), "location"

    at.text_input(key="location_latitude").set_value("12.9716")
    at.text_input(key="location_longitude").set_value("77.5946")
    at.button(key="location_continue").click()
    _run(at)
    assert not _widgets_missing_help(at), "rooftop choice"

    at.session_state["slide_draft"] = RooftopImageSlide(image=ImagePayload(mime_type="image/png", data=png_bytes))
    _run(at)
    assert not _widgets_missing_help(at), "rooftop preview"


def test_detect_location_stays_available_while_waiting(monkeypatch):
    monkeypatch.setenv("RWH_AUTO_DETECT_LOCATION", "true")
    at = AppTest.from_file(APP_PATH)
    _run(at)
    at.button(key="start_assessment").click()
    _run(at)
    _fill_personal(at)

    draft = at.session_state["slide_draft"]
    assert draft.status == "detecting"
    assert draft.detect_attempts == 1
    retry = at.button(key="detect_location")
    assert not retry.disabled
    assert retry.label == "Retry Detection"

    retry.click()
    _run(at)
    assert at.session_state["slide_draft"].detect_attempts == 2
    assert at.session_state["slide_draft"].request_key == "geolocation_request_2"
