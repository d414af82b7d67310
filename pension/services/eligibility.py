"""Eligibility filter for pension schemes.

Narrows the dataset to the schemes a user may enroll in.  Three
independent checks must all pass:

    1. Generic age bounds (``min_age`` / ``max_age``).  Absent bounds
       impose no constraint.
    2. Income limit derived from the free-text income criteria:
       ``bpl`` / ``below poverty line`` -> Rs 3 lakh, ``income cap`` /
       ``threshold`` -> Rs 5 lakh.
    3. Scheme-specific age window, either declared on the record or
       taken from the built-in table keyed by scheme id.

Income rule combination
-----------------------
Historically the income-cap check *replaces* the result of the BPL
check when both phrases appear, so the looser Rs 5 lakh limit decides.
That remains the default (``"last_match"``).  ``"intersect"`` requires
both limits to hold instead.  Which one is correct is awaiting a
product decision; see ``PENSION_INCOME_RULE_MODE``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final, Literal

import structlog

from pension.models.scheme import AgeWindow, SchemeRecord
from pension.models.user_profile import UserProfile

logger = structlog.get_logger(__name__)

IncomeRuleMode = Literal["last_match", "intersect"]

BPL_INCOME_LIMIT: Final[float] = 300_000.0
INCOME_CAP_LIMIT: Final[float] = 500_000.0

_BPL_KEYWORDS: Final[tuple[str, ...]] = ("bpl", "below poverty line")
_INCOME_CAP_KEYWORDS: Final[tuple[str, ...]] = ("income cap", "threshold")

# Enrolment windows for schemes whose rules are stricter than the
# dataset's generic bounds.
SCHEME_AGE_WINDOWS: Final[dict[str, AgeWindow]] = {
    "NPS_Tier_I": AgeWindow(min_age=18, max_age=70),
    "APY": AgeWindow(min_age=18, max_age=40),
    "PM_SYM": AgeWindow(min_age=18, max_age=40),
    "PMKMY": AgeWindow(min_age=18, max_age=40),
    "PM_LVM": AgeWindow(min_age=18, max_age=40),
    "NSAP_IGNOAPS": AgeWindow(min_age=60),
    "SCSS": AgeWindow(min_age=60),
    "PMVVY": AgeWindow(min_age=60),
}


def filter_by_country(
    schemes: Iterable[SchemeRecord],
    countries: Iterable[str],
) -> list[SchemeRecord]:
    """Keep schemes whose ``country`` matches one of *countries* (case-insensitive)."""
    wanted = {c.strip().lower() for c in countries if c and c.strip()}
    return [s for s in schemes if s.country and s.country.lower() in wanted]


class EligibilityFilter:
    """Applies age, income and scheme-specific rules to scheme records."""

    __slots__ = ("_income_rule_mode",)

    def __init__(self, income_rule_mode: IncomeRuleMode = "last_match") -> None:
        self._income_rule_mode = income_rule_mode

    @property
    def income_rule_mode(self) -> IncomeRuleMode:
        return self._income_rule_mode

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    @staticmethod
    def age_eligible(scheme: SchemeRecord, age: int) -> bool:
        return AgeWindow(min_age=scheme.min_age, max_age=scheme.max_age).contains(age)

    def income_eligible(self, scheme: SchemeRecord, annual_salary: float) -> bool:
        criteria = scheme.income_criteria.lower()
        bpl = any(kw in criteria for kw in _BPL_KEYWORDS)
        capped = any(kw in criteria for kw in _INCOME_CAP_KEYWORDS)

        if self._income_rule_mode == "intersect":
            eligible = True
            if bpl:
                eligible = eligible and annual_salary <= BPL_INCOME_LIMIT
            if capped:
                eligible = eligible and annual_salary <= INCOME_CAP_LIMIT
            return eligible

        eligible = True
        if bpl:
            eligible = annual_salary <= BPL_INCOME_LIMIT
        if capped:
            eligible = annual_salary <= INCOME_CAP_LIMIT
        return eligible

    @staticmethod
    def scheme_specific_eligible(scheme: SchemeRecord, age: int) -> bool:
        window = scheme.age_window or SCHEME_AGE_WINDOWS.get(scheme.scheme_id)
        if window is None:
            return True
        return window.contains(age)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_eligible(self, scheme: SchemeRecord, profile: UserProfile) -> bool:
        return (
            self.age_eligible(scheme, profile.age)
            and self.income_eligible(scheme, profile.annual_salary)
            and self.scheme_specific_eligible(scheme, profile.age)
        )

    def filter_eligible(
        self,
        schemes: Iterable[SchemeRecord],
        profile: UserProfile,
    ) -> list[SchemeRecord]:
        """Return the schemes *profile* may enroll in, preserving input order."""
        candidates = list(schemes)
        eligible = [s for s in candidates if self.is_eligible(s, profile)]
        logger.debug(
            "eligibility.filtered",
            candidates=len(candidates),
            eligible=len(eligible),
            income_rule_mode=self._income_rule_mode,
        )
        return eligible
