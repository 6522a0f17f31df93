"""Desktop entrypoint: serve the assessment wizard and open it in a browser."""

from __future__ import annotations

import os
import pathlib
import sys

from src.settings import STORAGE_ENV_VAR


def _bundle_root() -> pathlib.Path:
    if getattr(sys, "frozen", False):
        return pathlib.Path(getattr(sys, "_MEIPASS"))
    return pathlib.Path(__file__).resolve().parent


def _runtime_root() -> pathlib.Path:
    if getattr(sys, "frozen", False):
        return pathlib.Path(sys.executable).resolve().parent
    return pathlib.Path(__file__).resolve().parent


def streamlit_argv(app_path: pathlib.Path, extra_args: list[str] | None = None) -> list[str]:
    """Build the ``streamlit run`` command line; extra flags are appended after the defaults."""
    argv = [
        "streamlit",
        "run",
        str(app_path),
        "--server.headless=false",
        "--browser.gatherUsageStats=false",
    ]
    argv.extend(extra_args or [])
    return argv


def main() -> None:
    runtime_root = _runtime_root()
    os.environ.setdefault(STORAGE_ENV_VAR, str(runtime_root / ".local_store"))
    os.environ.setdefault("STREAMLIT_BROWSER_GATHER_USAGE_STATS", "false")
    os.chdir(runtime_root)

    from streamlit.web import cli as stcli

    sys.argv = streamlit_argv(_bundle_root() / "app.py", sys.argv[1:])
    raise SystemExit(stcli.main())


if __name__ == "__main__":
    main()
