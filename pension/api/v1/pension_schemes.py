"""Personalised pension-scheme recommendations for API v1.

``GET /api/v1/pension-schemes`` filters the dataset by country, keeps
the schemes the caller is eligible for, ranks them by relevance and
attaches a projected pension plus an insight summary.
"""

from __future__ import annotations

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

router = APIRouter(prefix="/pension-schemes", tags=["pension-schemes"])


@router.get("", response_model=PlanResponse)
async def recommend_pension_schemes(
    request: Request,
    age: str | None = Query(default=None, description="Age in whole years (0-120)"),
    annual_salary: str | None = Query(default=None, description="Gross annual salary in INR"),
    annualSalary: str | None = Query(default=None, include_in_schema=False),  # noqa: N803
    countries: list[str] | None = Query(
        default=None,
        description="Country names, repeated or comma-separated",
    ),
    country: str | None = Query(default=None, description="Single-country fallback"),
) -> PlanResponse:
    """Return eligible schemes ranked by relevance, with pension estimates.

    Responds 400 when age, salary or countries are missing or out of
    range, and 404 with ``reason`` set to ``no_schemes_for_country`` or
    ``no_eligible_schemes`` when nothing matches.
    """
    parsed_age = parse_age(age)
    parsed_salary = parse_salary(annual_salary if annual_salary is not None else annualSalary)
    requested = parse_countries(countries, country)

    if parsed_age is None or parsed_salary is None or requested is None:
        raise HTTPException(
            status_code=400,
            detail="Missing required parameters: age, annual_salary, and countries are required",
        )
    if not requested:
        raise HTTPException(
            status_code=400,
            detail='No valid country names provided after parsing the "countries" parameter',
        )
    validate_profile_ranges(parsed_age, parsed_salary)

    planner = get_planner(request)
    profile = UserProfile(age=parsed_age, annual_salary=parsed_salary, countries=requested)
    result = planner.plan(profile, countries=requested)
    raise_for_outcome(result)

    logger.info(
        "api.pension_schemes.served",
        countries=requested,
        total_schemes=len(result.schemes),
    )
    return plan_response(result, "Pension schemes retrieved successfully")
