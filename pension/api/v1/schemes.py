"""Scheme catalogue endpoints for API v1.

Lists the dataset by country without eligibility filtering.  When the
caller also passes age and salary, every listed scheme carries a
pension estimate and the response includes insights.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, Request

from pension.api.v1.params import (
    PlanResponse,
    get_planner,
    parse_age,
    parse_countries,
    parse_salary,
    plan_response,
    raise_for_outcome,
    validate_profile_ranges,
)
from pension.models.user_profile import UserProfile

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/schemes", tags=["schemes"])


@router.get("", response_model=PlanResponse)
async def list_schemes(
    request: Request,
    countries: list[str] | None = Query(
        default=None,
        description="Country names, repeated or comma-separated",
    ),
    country: str | None = Query(default=None, description="Single-country fallback"),
    age: str | None = Query(default=None, description="Optional age for estimates"),
    annual_salary: str | None = Query(default=None, description="Optional annual salary for estimates"),
    annualSalary: str | None = Query(default=None, include_in_schema=False),  # noqa: N803
) -> PlanResponse:
    """List a country's schemes, with estimates when age and salary are given."""
    requested = parse_countries(countries, country)
    if requested is None:
        raise HTTPException(
            status_code=400,
            detail="Missing required parameter: countries (use comma-separated or repeated params)",
        )
    if not requested:
        raise HTTPException(
            status_code=400,
            detail='No valid country names provided after parsing the "countries" parameter',
        )

    parsed_age = parse_age(age)
    parsed_salary = parse_salary(annual_salary if annual_salary is not None else annualSalary)
    profile: UserProfile | None = None
    if parsed_age is not None and parsed_salary is not None:
        validate_profile_ranges(parsed_age, parsed_salary)
        profile = UserProfile(age=parsed_age, annual_salary=parsed_salary, countries=requested)

    result = get_planner(request).browse(requested, profile)
    raise_for_outcome(result)

    if profile is None:
        return plan_response(result, "Schemes fetched successfully")
    return plan_response(result, "Schemes fetched and calculations computed successfully")


@router.get("/{scheme_id}")
async def get_scheme(request: Request, scheme_id: str) -> dict[str, Any]:
    """Return a single scheme record by its identifier."""
    scheme = get_planner(request).get_scheme(scheme_id)
    if scheme is None:
        raise HTTPException(status_code=404, detail=f"Scheme '{scheme_id}' not found")
    return scheme.model_dump(mode="json")
