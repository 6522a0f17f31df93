"""Environment-driven settings for the assessment wizard."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping


_ENV_PREFIX = "RWH_"
STORAGE_ENV_VAR = f"{_ENV_PREFIX}STORAGE_ROOT"

DEFAULT_STORAGE_ROOT = Path(".local_store")
DEFAULT_ANALYSIS_DELAY_SEC = 2.0
DEFAULT_IMAGE_ANALYSIS_DELAY_SEC = 3.0
DEFAULT_MAX_UPLOAD_MB = 10

_TRUE_TEXT = {"1", "true", "yes", "on"}
_FALSE_TEXT = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class WizardSettings:
    storage_root: Path = DEFAULT_STORAGE_ROOT
    analysis_delay_sec: float = DEFAULT_ANALYSIS_DELAY_SEC
    image_analysis_delay_sec: float = DEFAULT_IMAGE_ANALYSIS_DELAY_SEC
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    auto_detect_location: bool = True
    random_seed: int | None = None


def _safe_float(value: str | None, default: float) -> float:
    try:
        out = float(str(value).strip())
    except (TypeError, ValueError):
        return float(default)
    if not math.isfinite(out) or out < 0:
        return float(default)
    return out


def _safe_int(value: str | None, default: int | None) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _safe_bool(value: str | None, default: bool) -> bool:
    text = str(value or "").strip().lower()
    if text in _TRUE_TEXT:
        return True
    if text in _FALSE_TEXT:
        return False
    return default


def expand_storage_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return DEFAULT_STORAGE_ROOT
    text = str(path_value).strip()
    if not text:
        return DEFAULT_STORAGE_ROOT
    return Path(os.path.expandvars(os.path.expanduser(text)))


def settings_from_env(environ: Mapping[str, str] | None = None) -> WizardSettings:
    """Read settings from ``RWH_*`` variables, falling back to defaults on bad values."""

    env = os.environ if environ is None else environ
    max_upload_mb = _safe_float(env.get(f"{_ENV_PREFIX}MAX_UPLOAD_MB"), DEFAULT_MAX_UPLOAD_MB)
    if max_upload_mb <= 0:
        max_upload_mb = DEFAULT_MAX_UPLOAD_MB
    return WizardSettings(
        storage_root=expand_storage_root(env.get(STORAGE_ENV_VAR)),
        analysis_delay_sec=_safe_float(env.get(f"{_ENV_PREFIX}ANALYSIS_DELAY_SEC"), DEFAULT_ANALYSIS_DELAY_SEC),
        image_analysis_delay_sec=_safe_float(
            env.get(f"{_ENV_PREFIX}IMAGE_ANALYSIS_DELAY_SEC"), DEFAULT_IMAGE_ANALYSIS_DELAY_SEC
        ),
        max_upload_bytes=int(max_upload_mb * 1024 * 1024),
        auto_detect_location=_safe_bool(env.get(f"{_ENV_PREFIX}AUTO_DETECT_LOCATION"), True),
        random_seed=_safe_int(env.get(f"{_ENV_PREFIX}RANDOM_SEED"), None),
    )
