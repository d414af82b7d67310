from __future__ import annotations

from enum import StrEnum


class FormulaKind(StrEnum):
    """Estimation model used for a scheme's pension formula."""

    __slots__ = ()

    FIXED_MONTHLY = "fixed_monthly"
    RANGE_BASED = "range_based"
    EPS_FORMULA = "eps_formula"
    EPF_ACCUMULATION = "epf_accumulation"
    NPS_MARKET_LINKED = "nps_market_linked"
    FIXED_CONTRIBUTION = "fixed_contribution"
    DEFAULT = "default"


class EstimateType(StrEnum):
    """Kind tag carried by a computed estimate.

    Mirrors :class:`FormulaKind` plus ``error`` for schemes whose
    estimate could not be computed.
    """

    __slots__ = ()

    FIXED_MONTHLY = "fixed_monthly"
    RANGE_BASED = "range_based"
    EPS_FORMULA = "eps_formula"
    EPF_ACCUMULATION = "epf_accumulation"
    NPS_MARKET_LINKED = "nps_market_linked"
    FIXED_CONTRIBUTION = "fixed_contribution"
    DEFAULT = "default"
    ERROR = "error"


class AgeBracket(StrEnum):
    __slots__ = ()

    EARLY_CAREER = "18-40"
    MID_CAREER = "41-59"
    SENIOR = "60+"


class IncomeBracket(StrEnum):
    __slots__ = ()

    LOW = "low"  # <= 3 lakh
    MIDDLE = "middle"  # <= 10 lakh
    HIGH = "high"


class PlanOutcome(StrEnum):
    __slots__ = ()

    OK = "ok"
    NO_SCHEMES_FOR_COUNTRY = "no_schemes_for_country"
    NO_ELIGIBLE_SCHEMES = "no_eligible_schemes"
