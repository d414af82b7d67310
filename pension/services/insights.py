"""Aggregate pension totals and advisory text for a planning result."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from pension.models.estimate import InsightSummary, ScoredScheme
from pension.models.user_profile import UserProfile

LOW_REPLACEMENT_RATIO: Final[float] = 0.30
LOW_MONTHLY_TOTAL: Final[float] = 5_000.0
LOW_INCOME_TIP_LIMIT: Final[float] = 300_000.0

_INDIA: Final[str] = "india"

WARNING_LOW_REPLACEMENT: Final[str] = (
    "Your pension replacement ratio is low. Consider additional savings."
)
WARNING_LOW_MONTHLY: Final[str] = (
    "Total monthly pension is below ₹5,000. Consider multiple schemes."
)


def _add_india_tips(summary: InsightSummary, profile: UserProfile) -> None:
    age = profile.age
    if age < 30:
        summary.tips.append("Start early! Consider NPS for long-term wealth creation")
        summary.recommended_schemes.append("NPS_Tier_I")

    if 18 <= age <= 40:
        summary.tips.append("APY and PM-SYM are excellent for unorganized sector workers")
        summary.recommended_schemes.extend(["APY", "PM_SYM"])

    if profile.annual_salary <= LOW_INCOME_TIP_LIMIT:
        summary.tips.append(
            "Consider government schemes like PMKMY and PM-LVM for low-income groups"
        )
        summary.recommended_schemes.extend(["PMKMY", "PM_LVM"])

    if age >= 60:
        summary.tips.append("Focus on immediate pension schemes like SCSS and PMVVY")
        summary.recommended_schemes.extend(["SCSS", "PMVVY"])


def get_pension_insights(
    schemes: Iterable[ScoredScheme],
    profile: UserProfile,
) -> InsightSummary:
    """Sum projected pensions and derive tips and warnings.

    Only schemes with a positive monthly pension count towards the
    totals; lump-sum-only estimates (EPF) are left out.
    """
    summary = InsightSummary()

    for scheme in schemes:
        estimate = scheme.pension_calculation
        if estimate is not None and estimate.monthly_pension > 0:
            summary.total_monthly_pension += estimate.monthly_pension
            summary.total_annual_pension += estimate.annual_pension

    if profile.targets_country(_INDIA):
        _add_india_tips(summary, profile)

    other_countries = sorted(c for c in (profile.countries or ()) if c != _INDIA)
    if other_countries:
        # "usa" -> "USA", "japan" -> "Japan"
        names = ", ".join(c.upper() if len(c) <= 3 else c.title() for c in other_countries)
        summary.tips.append(
            f"Review workplace and state pension options available in {names}"
        )

    if profile.annual_salary > 0:
        summary.replacement_ratio = summary.total_annual_pension / profile.annual_salary
        if summary.replacement_ratio < LOW_REPLACEMENT_RATIO:
            summary.warnings.append(WARNING_LOW_REPLACEMENT)

    if summary.total_monthly_pension < LOW_MONTHLY_TOTAL:
        summary.warnings.append(WARNING_LOW_MONTHLY)

    return summary
