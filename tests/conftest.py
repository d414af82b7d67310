"""Shared fixtures for the pension planner test suite."""

from __future__ import annotations

import os

# Settings are read once at import time; pin the infra knobs before any
# test imports the application.
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["REDIS_URL"] = ""
os.environ["FIREBASE_API_KEY"] = ""

from typing import Any  # noqa: E402

import pytest  # noqa: E402

from pension.data.seed import load_schemes  # noqa: E402
from pension.models.scheme import SchemeRecord  # noqa: E402
from pension.models.user_profile import UserProfile  # noqa: E402


@pytest.fixture
def make_scheme():
    """Factory for hand-made scheme records with permissive defaults."""

    def _make(scheme_id: str = "TEST", **overrides: Any) -> SchemeRecord:
        fields: dict[str, Any] = {
            "scheme_id": scheme_id,
            "name": f"{scheme_id} scheme",
            "country": "India",
            "sector": "Organised",
            "category": "Test",
            "min_age": None,
            "max_age": None,
            "income_criteria": "",
            "pension_formula": "",
        }
        fields.update(overrides)
        return SchemeRecord(**fields)

    return _make


@pytest.fixture
def make_profile():
    def _make(age: int = 30, annual_salary: float = 600_000, countries: Any = None) -> UserProfile:
        return UserProfile(age=age, annual_salary=annual_salary, countries=countries)

    return _make


@pytest.fixture(scope="session")
def bundled_schemes() -> list[SchemeRecord]:
    return load_schemes()
