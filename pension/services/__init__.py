"""Service layer -- pension calculation core plus identity and user storage."""

from __future__ import annotations

from pension.services.calculator import calculate_pension, calculate_pensions_for_schemes
from pension.services.eligibility import EligibilityFilter, filter_by_country
from pension.services.identity import (
    AuthSession,
    IdentityClient,
    IdentityError,
    IdentityUnavailableError,
    IdentityUser,
)
from pension.services.insights import get_pension_insights
from pension.services.planner import PensionPlanner
from pension.services.scoring import rank_schemes, score_scheme
from pension.services.user_store import UserStore, UserStoreError

__all__ = [
    "AuthSession",
    "EligibilityFilter",
    "IdentityClient",
    "IdentityError",
    "IdentityUnavailableError",
    "IdentityUser",
    "PensionPlanner",
    "UserStore",
    "UserStoreError",
    "calculate_pension",
    "calculate_pensions_for_schemes",
    "filter_by_country",
    "get_pension_insights",
    "rank_schemes",
    "score_scheme",
]
