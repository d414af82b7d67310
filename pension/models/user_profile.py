"""Request-scoped user profile for pension planning.

One profile is built per request from the caller's age, annual salary
and (optionally) the countries whose schemes should be considered.
Range validation happens here so the calculation core can assume
sanitised input.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field, field_validator


class UserProfile(BaseModel):
    """Age / income profile evaluated against the scheme dataset."""

    model_config = {"frozen": True}

    age: int = Field(ge=0, le=120)
    annual_salary: float = Field(ge=0)
    countries: frozenset[str] | None = None  # lower-cased; None = no country filter

    @field_validator("countries", mode="before")
    @classmethod
    def _normalise_countries(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        return frozenset(str(c).strip().lower() for c in value if str(c).strip())  # type: ignore[union-attr]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def monthly_salary(self) -> float:
        return self.annual_salary / 12

    @property
    def years_to_retirement(self) -> int:
        return max(0, 60 - self.age)

    @property
    def years_of_service(self) -> int:
        """Contribution years assumed by the accumulation models (capped at 40)."""
        return min(self.years_to_retirement, 40)

    def targets_country(self, country: str) -> bool:
        """True when no country filter is set or *country* is in it."""
        return self.countries is None or country.lower() in self.countries
