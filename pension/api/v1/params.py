"""Query-string parsing and response shaping shared by the scheme routers."""

from __future__ import annotations

import math
from typing import Any

from fastapi import HTTPException, Request
from pydantic import BaseModel

from pension.models.enums import PlanOutcome
from pension.models.estimate import PlanResult
from pension.services.calculator import round_half_up
from pension.services.planner import PensionPlanner

_NOT_FOUND_MESSAGES: dict[PlanOutcome, str] = {
    PlanOutcome.NO_SCHEMES_FOR_COUNTRY: "No schemes found for the requested countries",
    PlanOutcome.NO_ELIGIBLE_SCHEMES: "No eligible schemes found for this age and income",
}


class PlanResponse(BaseModel):
    """Body returned by the planning and catalogue endpoints."""

    success: bool = True
    message: str
    countries: list[str]
    user_profile: dict[str, Any] | None = None
    total_schemes: int
    schemes: list[dict[str, Any]]
    pension_insights: dict[str, Any] | None = None
    timestamp: str


def get_planner(request: Request) -> PensionPlanner:
    planner: PensionPlanner | None = getattr(request.app.state, "planner", None)
    if planner is None:
        raise HTTPException(status_code=503, detail="Scheme dataset not loaded.")
    return planner


def parse_countries(countries: list[str] | None, country: str | None) -> list[str] | None:
    """Flatten repeated and comma-separated ``countries`` values.

    Returns *None* when neither key was supplied and an empty list when
    the supplied values held no names (e.g. ``?countries=,,``).
    """
    raw = list(countries or [])
    if not raw and country:
        raw = [country]
    if not raw:
        return None
    return [name.strip() for entry in raw for name in entry.split(",") if name.strip()]


def parse_age(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        raise HTTPException(status_code=400, detail=f"Invalid age: {value!r} is not a number") from None


def parse_salary(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        salary = float(value)
    except ValueError:
        raise HTTPException(
            status_code=400, detail=f"Invalid annual salary: {value!r} is not a number"
        ) from None
    if not math.isfinite(salary):
        raise HTTPException(status_code=400, detail="Invalid annual salary: must be a finite number")
    return salary


def validate_profile_ranges(age: int, annual_salary: float) -> None:
    if age < 0 or age > 120:
        raise HTTPException(status_code=400, detail="Invalid age: Age must be between 0 and 120")
    if annual_salary < 0:
        raise HTTPException(
            status_code=400, detail="Invalid annual salary: Salary must not be negative"
        )


def raise_for_outcome(result: PlanResult) -> None:
    """Map an empty planning outcome to a 404 carrying the outcome as ``reason``."""
    if result.found:
        return
    raise HTTPException(
        status_code=404,
        detail={
            "reason": result.outcome.value,
            "message": _NOT_FOUND_MESSAGES[result.outcome],
            "requested_countries": result.countries,
        },
    )


def plan_response(result: PlanResult, message: str) -> PlanResponse:
    user_profile: dict[str, Any] | None = None
    if result.profile is not None:
        user_profile = {
            "age": result.profile.age,
            "annual_salary": result.profile.annual_salary,
            "monthly_salary": round_half_up(result.profile.monthly_salary),
        }

    return PlanResponse(
        message=message,
        countries=result.countries,
        user_profile=user_profile,
        total_schemes=len(result.schemes),
        schemes=[s.model_dump(mode="json", exclude_none=True) for s in result.schemes],
        pension_insights=result.insights.model_dump(mode="json") if result.insights else None,
        timestamp=result.generated_at.isoformat(),
    )
