"""Heuristic relevance scoring for eligible schemes.

Score is additive:

    +3  scheme targets the user's age bracket (18-40, 41-59, 60+)
    +2  scheme targets the user's income bracket (<=3L, <=10L, above)
    +1  scheme is open to all sectors

Target brackets come from the record's ``age_brackets`` /
``income_brackets`` tags when present, else from the built-in tables.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from pension.models.enums import AgeBracket, IncomeBracket
from pension.models.estimate import EligibilityFlags, ScoredScheme
from pension.models.scheme import SchemeRecord
from pension.models.user_profile import UserProfile
from pension.services.calculator import LOW_INCOME_LIMIT, MIDDLE_INCOME_LIMIT

AGE_MATCH_POINTS: Final[int] = 3
INCOME_MATCH_POINTS: Final[int] = 2
ALL_SECTOR_POINTS: Final[int] = 1

DEFAULT_RECOMMENDATION: Final[str] = "Consider based on your specific needs"

AGE_BRACKET_RECOMMENDATIONS: Final[dict[AgeBracket, str]] = {
    AgeBracket.EARLY_CAREER: "Excellent for long-term retirement planning",
    AgeBracket.MID_CAREER: "Good for mid-career retirement planning",
    AgeBracket.SENIOR: "Suitable for immediate pension benefits",
}

AGE_BRACKET_SCHEMES: Final[dict[AgeBracket, frozenset[str]]] = {
    AgeBracket.EARLY_CAREER: frozenset({"APY", "PM_SYM", "PMKMY", "PM_LVM", "NPS_Tier_I"}),
    AgeBracket.MID_CAREER: frozenset({"NPS_Tier_I", "EPF", "EPS"}),
    AgeBracket.SENIOR: frozenset({"NSAP_IGNOAPS", "SCSS", "PMVVY"}),
}

INCOME_BRACKET_SCHEMES: Final[dict[IncomeBracket, frozenset[str]]] = {
    IncomeBracket.LOW: frozenset({"APY", "PM_SYM", "PMKMY", "PM_LVM", "NSAP_IGNOAPS"}),
    IncomeBracket.MIDDLE: frozenset({"NPS_Tier_I", "EPF", "EPS"}),
    IncomeBracket.HIGH: frozenset({"NPS_Tier_I", "SCSS", "PMVVY"}),
}


def age_bracket(age: int) -> AgeBracket | None:
    """Map *age* onto a bracket; under-18s have none."""
    if 18 <= age <= 40:
        return AgeBracket.EARLY_CAREER
    if 41 <= age <= 59:
        return AgeBracket.MID_CAREER
    if age >= 60:
        return AgeBracket.SENIOR
    return None


def income_bracket(annual_salary: float) -> IncomeBracket:
    if annual_salary <= LOW_INCOME_LIMIT:
        return IncomeBracket.LOW
    if annual_salary <= MIDDLE_INCOME_LIMIT:
        return IncomeBracket.MIDDLE
    return IncomeBracket.HIGH


def _targets_age(scheme: SchemeRecord, bracket: AgeBracket) -> bool:
    if scheme.age_brackets:
        return bracket in scheme.age_brackets
    return scheme.scheme_id in AGE_BRACKET_SCHEMES[bracket]


def _targets_income(scheme: SchemeRecord, bracket: IncomeBracket) -> bool:
    if scheme.income_brackets:
        return bracket in scheme.income_brackets
    return scheme.scheme_id in INCOME_BRACKET_SCHEMES[bracket]


def score_scheme(scheme: SchemeRecord, profile: UserProfile) -> ScoredScheme:
    """Annotate an already-eligible scheme with a score and recommendation."""
    score = 0
    recommendation: str | None = None

    bracket = age_bracket(profile.age)
    if bracket is not None and _targets_age(scheme, bracket):
        score += AGE_MATCH_POINTS
        recommendation = AGE_BRACKET_RECOMMENDATIONS[bracket]

    if _targets_income(scheme, income_bracket(profile.annual_salary)):
        score += INCOME_MATCH_POINTS

    if scheme.sector == "All":
        score += ALL_SECTOR_POINTS

    return ScoredScheme.from_record(
        scheme,
        relevance_score=score,
        recommendation=recommendation or DEFAULT_RECOMMENDATION,
        # The record already passed the eligibility filter.
        eligibility=EligibilityFlags(),
    )


def rank_schemes(schemes: Iterable[SchemeRecord], profile: UserProfile) -> list[ScoredScheme]:
    """Score every scheme and sort by descending score (stable)."""
    scored = [score_scheme(s, profile) for s in schemes]
    return sorted(scored, key=lambda s: s.relevance_score, reverse=True)
