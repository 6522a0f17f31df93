"""Runtime diagnostics for wizard sessions.

Events are JSON lines under the storage root. Personal details collected by
the wizard (name, mobile, email) are stripped from every event context before
it is written, whatever the caller passes.
"""

from __future__ import annotations

import json
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from streamlit.runtime.scriptrunner import get_script_run_ctx

from src.settings import STORAGE_ENV_VAR, expand_storage_root


LOG_FILE_NAME = "runtime_events.jsonl"
LOG_DIR = Path(".local_store")
RUNTIME_EVENTS_LOG_FILE = LOG_DIR / LOG_FILE_NAME

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
PERSONAL_FIELDS = frozenset({"name", "mobile", "email"})
REDACTED_MARKER = "redacted_fields"

_EXCEPTION_HOOK_INSTALLED = False


def configure_log_root(path_value: str | Path | None) -> Path:
    global LOG_DIR, RUNTIME_EVENTS_LOG_FILE
    LOG_DIR = expand_storage_root(path_value)
    RUNTIME_EVENTS_LOG_FILE = LOG_DIR / LOG_FILE_NAME
    return LOG_DIR


def runtime_log_path() -> str:
    return str(RUNTIME_EVENTS_LOG_FILE.resolve())


def _jsonable(value: Any):
    if isinstance(value, (set, frozenset, tuple)):
        return sorted(value, key=str) if isinstance(value, (set, frozenset)) else list(value)
    return str(value)


def scrub_context(context: dict[str, Any] | None) -> dict[str, Any]:
    """Drop personal fields at any depth and note which keys were removed."""
    removed: set[str] = set()

    def _walk(node: Any) -> Any:
        if isinstance(node, dict):
            kept = {}
            for key, val in node.items():
                if str(key).lower() in PERSONAL_FIELDS:
                    removed.add(str(key).lower())
                    continue
                kept[key] = _walk(val)
            return kept
        if isinstance(node, list):
            return [_walk(v) for v in node]
        return node

    clean = _walk(dict(context or {}))
    if removed:
        clean[REDACTED_MARKER] = sorted(removed)
    return clean


def _normalize_level(level: str) -> str:
    text = str(level).upper()
    return text if text in LEVELS else "INFO"


def _event_line(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None,
    exc: BaseException | None,
) -> str:
    entry: dict[str, Any] = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "level": _normalize_level(level),
        "event": str(event),
        "message": str(message),
        "context": scrub_context(context),
    }
    if exc is not None:
        entry["exception_type"] = type(exc).__name__
        entry["exception_message"] = str(exc)
        if exc.__traceback__ is not None:
            entry["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return json.dumps(entry, default=_jsonable, ensure_ascii=False)


def append_runtime_event(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    try:
        line = _event_line(level, event, message, context, exc)
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        with RUNTIME_EVENTS_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except Exception:
        # A full disk or unwritable root must not interrupt the wizard.
        pass


def _parse_line(line: str) -> dict[str, Any]:
    try:
        parsed = json.loads(line)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed
    return {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "level": "ERROR",
        "event": "log_parse_error",
        "message": "Malformed log line encountered.",
        "context": {"line": line},
    }


def read_runtime_events(limit: int = 50, min_level: str = "DEBUG") -> list[dict[str, Any]]:
    """Return up to ``limit`` most recent events at or above ``min_level``, oldest first."""
    if limit <= 0 or not RUNTIME_EVENTS_LOG_FILE.exists():
        return []
    try:
        lines = RUNTIME_EVENTS_LOG_FILE.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []
    floor = LEVELS.index(_normalize_level(min_level))
    events = [
        e for e in (_parse_line(line) for line in lines if line.strip())
        if LEVELS.index(_normalize_level(e.get("level", "INFO"))) >= floor
    ]
    return events[-int(limit) :]


def install_global_exception_logging() -> None:
    """Record exceptions that escape a Streamlit script run."""
    global _EXCEPTION_HOOK_INSTALLED
    if _EXCEPTION_HOOK_INSTALLED:
        return
    previous_hook = sys.excepthook

    def _hook(exc_type, exc, exc_tb):
        if get_script_run_ctx() is not None:
            append_runtime_event("ERROR", "uncaught_exception", str(exc), exc=exc)
        previous_hook(exc_type, exc, exc_tb)

    sys.excepthook = _hook
    _EXCEPTION_HOOK_INSTALLED = True


configure_log_root(os.getenv(STORAGE_ENV_VAR, ""))
