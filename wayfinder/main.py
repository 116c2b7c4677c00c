"""Application entry point for the Campus Wayfinder service.

Run locally:
    uvicorn wayfinder.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import uvicorn

from wayfinder.api import create_app, load_dataset
from wayfinder.campus import load_campus_data


def _load_local_env() -> None:
    """Export settings from dotenv files into the process environment.

    The package-local file is read before the working-directory one, and
    variables already set in the process environment are never overridden.
    """
    for env_path in (Path("wayfinder/.env"), Path(".env")):
        if not env_path.is_file():
            continue
        for raw in env_path.read_text(encoding="utf-8").splitlines():
            entry = raw.strip()
            if entry.startswith("export "):
                entry = entry[len("export "):].lstrip()
            name, sep, value = entry.partition("=")
            name = name.strip()
            if entry.startswith("#") or not sep or not name:
                continue
            os.environ.setdefault(name, value.strip().strip("'\""))


def _configure_logging() -> None:
    level = os.getenv("WAYFINDER_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _preload_campus() -> None:
    """Load the dataset named by WAYFINDER_CAMPUS_PATH, if set."""
    campus_path = os.getenv("WAYFINDER_CAMPUS_PATH", "").strip()
    if not campus_path:
        return
    load_dataset(load_campus_data(campus_path))


_load_local_env()
_configure_logging()
app = create_app()
_preload_campus()


if __name__ == "__main__":
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    reload_enabled = os.getenv("API_RELOAD", "true").lower() == "true"
    uvicorn.run("wayfinder.main:app", host=host, port=port, reload=reload_enabled)
