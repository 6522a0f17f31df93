from __future__ import annotations

from pathlib import Path

import src.runtime_logging as runtime_logging


def test_runtime_logging_append_and_read(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime_logging, "LOG_DIR", Path(tmp_path))
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", Path(tmp_path) / "runtime_events.jsonl")

    runtime_logging.append_runtime_event(
        level="warning",
        event="slide_validation_failed",
        message="Validation failed.",
        context={"step": "personal_info", "fields": ("mobile",)},
    )
    events = runtime_logging.read_runtime_events(limit=10)
    assert len(events) == 1
    assert events[0]["event"] == "slide_validation_failed"
    assert events[0]["level"] == "WARNING"
    assert events[0]["context"]["fields"] == ["mobile"]


def test_runtime_logging_records_exception_details(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime_logging, "LOG_DIR", Path(tmp_path))
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", Path(tmp_path) / "runtime_events.jsonl")

    try:
        raise RuntimeError("camera busy")
    except RuntimeError as exc:
        runtime_logging.append_runtime_event("error", "camera_failed", "Camera failed.", exc=exc)

    event = runtime_logging.read_runtime_events(limit=1)[0]
    assert event["exception_type"] == "RuntimeError"
    assert event["exception_message"] == "camera busy"
    assert "Traceback" in event["traceback"]


def test_runtime_logging_handles_malformed_lines(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime_logging, "LOG_DIR", Path(tmp_path))
    log_file = Path(tmp_path) / "runtime_events.jsonl"
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", log_file)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    log_file.write_text('{"event":"ok","level":"INFO","timestamp_utc":"2026-01-01T00:00:00+00:00","message":"ok","context":{}}\nnot-json\n', encoding="utf-8")

    events = runtime_logging.read_runtime_events(limit=10)
    assert len(events) == 2
    assert events[0]["event"] == "ok"
    assert events[1]["event"] == "log_parse_error"


def test_configure_log_root_moves_log_file(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime_logging, "LOG_DIR", runtime_logging.LOG_DIR)
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", runtime_logging.RUNTIME_EVENTS_LOG_FILE)

    root = runtime_logging.configure_log_root(tmp_path / "logs")
    runtime_logging.append_runtime_event("info", "report_generated", "Report ready.")

    assert root == tmp_path / "logs"
    assert (tmp_path / "logs" / "runtime_events.jsonl").exists()
    assert runtime_logging.read_runtime_events(limit=0) == []


def test_personal_fields_never_reach_the_log(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime_logging, "LOG_DIR", Path(tmp_path))
    log_file = Path(tmp_path) / "runtime_events.jsonl"
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", log_file)

    runtime_logging.append_runtime_event(
        "info",
        "wizard_step_completed",
        "Wizard step completed.",
        context={
            "step": "personal_info",
            "Name": "Asha Rao",
            "record": {"mobile": "9876543210", "email": "asha@example.com", "latitude": 19.076},
        },
    )

    raw = log_file.read_text(encoding="utf-8")
    assert "Asha Rao" not in raw
    assert "9876543210" not in raw
    assert "asha@example.com" not in raw
    context = runtime_logging.read_runtime_events(limit=1)[0]["context"]
    assert context["step"] == "personal_info"
    assert context["record"] == {"latitude": 19.076}
    assert context["redacted_fields"] == ["email", "mobile", "name"]


def test_read_runtime_events_filters_by_level(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime_logging, "LOG_DIR", Path(tmp_path))
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", Path(tmp_path) / "runtime_events.jsonl")

    runtime_logging.append_runtime_event("info", "analysis_completed", "Done.")
    runtime_logging.append_runtime_event("warning", "geolocation_failed", "Denied.", context={"error_code": 1})
    runtime_logging.append_runtime_event("error", "uncaught_exception", "Boom.")

    warnings = runtime_logging.read_runtime_events(limit=10, min_level="warning")
    assert [e["event"] for e in warnings] == ["geolocation_failed", "uncaught_exception"]
    assert len(runtime_logging.read_runtime_events(limit=10)) == 3
    assert [e["event"] for e in runtime_logging.read_runtime_events(limit=1)] == ["uncaught_exception"]
