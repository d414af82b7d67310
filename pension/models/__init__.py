from pension.models.enums import (
    AgeBracket,
    EstimateType,
    FormulaKind,
    IncomeBracket,
    PlanOutcome,
)
from pension.models.estimate import (
    EligibilityFlags,
    InsightSummary,
    PensionEstimate,
    PensionRange,
    PlanResult,
    ScoredScheme,
)
from pension.models.scheme import AgeWindow, SchemeRecord
from pension.models.user import UserRecord
from pension.models.user_profile import UserProfile

__all__ = [
    "AgeBracket",
    "AgeWindow",
    "EligibilityFlags",
    "EstimateType",
    "FormulaKind",
    "IncomeBracket",
    "InsightSummary",
    "PensionEstimate",
    "PensionRange",
    "PlanOutcome",
    "PlanResult",
    "SchemeRecord",
    "ScoredScheme",
    "UserProfile",
    "UserRecord",
]
