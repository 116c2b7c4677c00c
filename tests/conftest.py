"""Pytest global fixtures and test isolation hooks."""

from __future__ import annotations

from pathlib import Path

import pytest

from wayfinder.api import STATE
from wayfinder.campus import CampusData, load_campus_data

SAMPLE_CAMPUS_PATH = Path(__file__).resolve().parent.parent / "assets" / "sample_campus.json"


@pytest.fixture(autouse=True)
def reset_service_state() -> None:
    """Reset in-memory API state before each test."""
    STATE.router = None
    STATE.validation_report = None


@pytest.fixture()
def sample_campus() -> CampusData:
    """Two-floor engineering building with stairs V1 and elevator V2."""
    return load_campus_data(SAMPLE_CAMPUS_PATH)


@pytest.fixture()
def sample_campus_payload() -> str:
    """Raw JSON text of the sample campus for API uploads."""
    return SAMPLE_CAMPUS_PATH.read_text(encoding="utf-8")
