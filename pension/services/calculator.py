"""Pension estimation from free-text scheme formulas.

Each scheme in the dataset describes its payout in prose
(``"₹3,000 per month"``, ``"Pension = Pensionable Salary x Pensionable
Service / 70"``, ...).  The estimator picks one numeric model per scheme
and projects a monthly / annual pension for the caller's profile.

Model selection:
    * An explicit ``formula_kind`` on the record always wins.
    * Otherwise the lower-cased formula text is tested against an
      ordered rule list; the first match decides.  Order matters: a
      currency range also contains a currency amount, so the range rule
      must see it before the fixed-amount rule does.

Accumulation models use the closed-form sum of year-end compounded
contributions ``sum_{y=1..n} C * (1 + r) ** y``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable
from typing import Final

import structlog

from pension.models.enums import EstimateType, FormulaKind
from pension.models.estimate import PensionEstimate, PensionRange, ScoredScheme
from pension.models.scheme import SchemeRecord
from pension.models.user_profile import UserProfile

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Model constants
# ---------------------------------------------------------------------------

LOW_INCOME_LIMIT: Final[float] = 300_000.0
MIDDLE_INCOME_LIMIT: Final[float] = 1_000_000.0

EPS_SALARY_CAP: Final[float] = 15_000.0
EPS_FACTOR: Final[float] = 0.00833

EPF_EMPLOYEE_RATE: Final[float] = 0.12
EPF_EMPLOYER_RATE: Final[float] = 0.12
EPF_INTEREST_RATE: Final[float] = 0.085

NPS_EMPLOYEE_RATE: Final[float] = 0.10
NPS_EMPLOYER_RATE: Final[float] = 0.10
NPS_EXPECTED_RETURN: Final[float] = 0.10
NPS_LUMP_SUM_SHARE: Final[float] = 0.6

ANNUITY_RATE: Final[float] = 0.06
DEFAULT_REPLACEMENT_SHARE: Final[float] = 0.4

CO_CONTRIBUTION_INTEREST_RATE: Final[float] = 0.08

# scheme_id -> (monthly self contribution, monthly government co-contribution)
CO_CONTRIBUTION_PLANS: Final[dict[str, tuple[int, int]]] = {
    "APY": (100, 50),
    "PM_SYM": (100, 100),
}

_NUMBER_RE: Final = re.compile(r"\d[\d,]*")
_RANGE_RE: Final = re.compile(r"₹(\d[\d,]*)–₹(\d[\d,]*)")

ERROR_NARRATIVE: Final[str] = "Unable to calculate pension for this scheme"


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def extract_number(text: str) -> int:
    """Return the first integer-like number in *text*, or 0 if there is none."""
    match = _NUMBER_RE.search(text)
    if match is None:
        return 0
    return int(match.group(0).replace(",", ""))


def extract_range(text: str) -> PensionRange | None:
    """Parse ``"₹1,000–₹5,000"`` into its bounds."""
    match = _RANGE_RE.search(text)
    if match is None:
        return None
    return PensionRange(
        min=int(match.group(1).replace(",", "")),
        max=int(match.group(2).replace(",", "")),
    )


def classify_formula(scheme: SchemeRecord) -> FormulaKind:
    """Decide which estimation model applies to *scheme*."""
    if scheme.formula_kind is not None:
        return scheme.formula_kind

    formula = scheme.pension_formula.lower()
    per_month = "per month" in formula
    is_range = _RANGE_RE.search(formula) is not None

    if "₹" in formula and per_month and not is_range:
        return FormulaKind.FIXED_MONTHLY
    if is_range and per_month:
        return FormulaKind.RANGE_BASED
    if "pensionable salary" in formula and "pensionable service" in formula:
        return FormulaKind.EPS_FORMULA
    if "accumulates" in formula and "contributions" in formula:
        return FormulaKind.EPF_ACCUMULATION
    if "market" in formula and "corpus" in formula:
        return FormulaKind.NPS_MARKET_LINKED
    if scheme.scheme_id in CO_CONTRIBUTION_PLANS:
        return FormulaKind.FIXED_CONTRIBUTION
    return FormulaKind.DEFAULT


# ---------------------------------------------------------------------------
# Arithmetic helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compound_corpus(annual_contribution: float, rate: float, years: int) -> float:
    """Value of *years* annual contributions, each compounded to year end."""
    if years <= 0:
        return 0.0
    if rate == 0:
        return annual_contribution * years
    growth = 1 + rate
    return annual_contribution * growth * (growth**years - 1) / rate


def _inr(amount: float) -> str:
    return f"₹{amount:,.0f}"


# ---------------------------------------------------------------------------
# Estimation models
# ---------------------------------------------------------------------------


def _fixed_monthly(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    amount = extract_number(scheme.pension_formula.lower())
    return PensionEstimate(
        type=EstimateType.FIXED_MONTHLY,
        monthly_pension=amount,
        annual_pension=amount * 12,
        calculation=f"Fixed monthly pension of {_inr(amount)}",
    )


def _range_based(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    bounds = extract_range(scheme.pension_formula.lower())
    if bounds is None:
        # Tagged as a range but the text carries none
        return _default(scheme, profile)

    if profile.annual_salary <= LOW_INCOME_LIMIT:
        amount: float = bounds.min
    elif profile.annual_salary <= MIDDLE_INCOME_LIMIT:
        amount = (bounds.min + bounds.max) / 2
    else:
        amount = bounds.max

    return PensionEstimate(
        type=EstimateType.RANGE_BASED,
        monthly_pension=amount,
        annual_pension=amount * 12,
        range=bounds,
        calculation=(
            f"Estimated pension between {_inr(bounds.min)} - {_inr(bounds.max)} per month"
        ),
    )


def _eps_formula(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    years = profile.years_of_service
    pensionable_salary = min(profile.monthly_salary, EPS_SALARY_CAP)
    monthly = round_half_up(pensionable_salary * years * EPS_FACTOR)
    return PensionEstimate(
        type=EstimateType.EPS_FORMULA,
        monthly_pension=monthly,
        annual_pension=monthly * 12,
        calculation=(
            f"EPS: {_inr(pensionable_salary)} × {years} years × {EPS_FACTOR} "
            f"= {_inr(monthly)}/month"
        ),
    )


def _epf_accumulation(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    monthly_contribution = profile.monthly_salary * (EPF_EMPLOYEE_RATE + EPF_EMPLOYER_RATE)
    corpus = round_half_up(
        compound_corpus(monthly_contribution * 12, EPF_INTEREST_RATE, profile.years_of_service)
    )
    return PensionEstimate(
        type=EstimateType.EPF_ACCUMULATION,
        monthly_pension=0,
        annual_pension=0,
        lump_sum_corpus=corpus,
        calculation=f"EPF Corpus: {_inr(corpus)} (lump sum at retirement)",
    )


def _nps_market_linked(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    monthly_contribution = profile.monthly_salary * (NPS_EMPLOYEE_RATE + NPS_EMPLOYER_RATE)
    corpus = compound_corpus(monthly_contribution * 12, NPS_EXPECTED_RETURN, profile.years_of_service)
    lump_sum = corpus * NPS_LUMP_SUM_SHARE
    annuity_corpus = corpus - lump_sum
    monthly = round_half_up(annuity_corpus * ANNUITY_RATE / 12)
    return PensionEstimate(
        type=EstimateType.NPS_MARKET_LINKED,
        monthly_pension=monthly,
        annual_pension=monthly * 12,
        lump_sum_corpus=round_half_up(lump_sum),
        annuity_corpus=round_half_up(annuity_corpus),
        calculation=(
            f"NPS: {_inr(corpus)} corpus → {_inr(lump_sum)} lump sum "
            f"+ {_inr(monthly)}/month annuity"
        ),
    )


def _fixed_contribution(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    own, government = CO_CONTRIBUTION_PLANS[scheme.scheme_id]
    corpus = compound_corpus((own + government) * 12, CO_CONTRIBUTION_INTEREST_RATE, profile.years_of_service)
    monthly = round_half_up(corpus * ANNUITY_RATE / 12)
    return PensionEstimate(
        type=EstimateType.FIXED_CONTRIBUTION,
        monthly_pension=monthly,
        annual_pension=monthly * 12,
        annuity_corpus=round_half_up(corpus),
        calculation=(
            f"{scheme.name}: {_inr(corpus)} corpus → {_inr(monthly)}/month pension"
        ),
    )


def _default(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    monthly = round_half_up(profile.monthly_salary * DEFAULT_REPLACEMENT_SHARE)
    return PensionEstimate(
        type=EstimateType.DEFAULT,
        monthly_pension=monthly,
        annual_pension=monthly * 12,
        calculation=f"Estimated pension: 40% of current salary = {_inr(monthly)}/month",
    )


_ESTIMATORS: Final[dict[FormulaKind, Callable[[SchemeRecord, UserProfile], PensionEstimate]]] = {
    FormulaKind.FIXED_MONTHLY: _fixed_monthly,
    FormulaKind.RANGE_BASED: _range_based,
    FormulaKind.EPS_FORMULA: _eps_formula,
    FormulaKind.EPF_ACCUMULATION: _epf_accumulation,
    FormulaKind.NPS_MARKET_LINKED: _nps_market_linked,
    FormulaKind.FIXED_CONTRIBUTION: _fixed_contribution,
    FormulaKind.DEFAULT: _default,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def error_estimate() -> PensionEstimate:
    return PensionEstimate(
        type=EstimateType.ERROR,
        monthly_pension=0,
        annual_pension=0,
        calculation=ERROR_NARRATIVE,
    )


def calculate_pension(scheme: SchemeRecord, profile: UserProfile) -> PensionEstimate:
    """Estimate the pension *scheme* would pay for *profile*.

    Never raises: a failure for one scheme is logged and reported as an
    ``error`` estimate with zero pension so batch totals stay defined.
    """
    try:
        kind = classify_formula(scheme)
        return _ESTIMATORS[kind](scheme, profile)
    except Exception:
        logger.warning(
            "calculator.estimate_failed",
            scheme_id=scheme.scheme_id,
            exc_info=True,
        )
        return error_estimate()


def calculate_pensions_for_schemes(
    schemes: Iterable[SchemeRecord],
    profile: UserProfile,
) -> list[ScoredScheme]:
    """Attach a :class:`PensionEstimate` to a copy of every scheme, in order."""
    return [
        ScoredScheme.from_record(scheme, pension_calculation=calculate_pension(scheme, profile))
        for scheme in schemes
    ]
