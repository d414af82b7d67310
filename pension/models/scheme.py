from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from pension.models.enums import AgeBracket, FormulaKind, IncomeBracket


class AgeWindow(BaseModel):
    """Scheme-specific enrolment age window.  ``None`` means unbounded."""

    model_config = {"frozen": True}

    min_age: int | None = None
    max_age: int | None = None

    def contains(self, age: int) -> bool:
        if self.min_age is not None and age < self.min_age:
            return False
        if self.max_age is not None and age > self.max_age:
            return False
        return True


class SchemeRecord(BaseModel):
    """A single pension scheme from the static dataset.

    Records are immutable once loaded; request handling works on
    annotated copies (:class:`~pension.models.estimate.ScoredScheme`).
    """

    model_config = {"frozen": True, "populate_by_name": True}

    scheme_id: str
    name: str
    country: str | None = None
    sector: str | None = None
    category: str | None = None

    # -- Eligibility bounds ---------------------------------------------------
    min_age: int | None = None
    max_age: int | None = None
    income_criteria: str = ""

    # -- Payout ----------------------------------------------------------------
    pension_formula: str = ""

    # -- Descriptive metadata, passed through unchanged ------------------------
    employee_contribution_pct: str | float | None = None
    administering_agency: str | None = None
    official_info_link: str | None = None

    # -- Declarative metadata (optional; overrides built-in tables) -------------
    formula_kind: FormulaKind | None = None
    age_window: AgeWindow | None = None
    age_brackets: list[AgeBracket] = Field(default_factory=list)
    income_brackets: list[IncomeBracket] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_age_bounds(self) -> SchemeRecord:
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError(
                f"min_age {self.min_age} exceeds max_age {self.max_age} for {self.scheme_id}"
            )
        return self
