"""End-to-end planning pass over the scheme dataset.

Pipeline for one request::

    country filter -> eligibility filter -> relevance scoring (stable sort)
        -> pension estimation -> insight aggregation

The planner holds the dataset loaded at startup and no per-request
state, so one instance is shared by all requests.  Empty results are
reported through :class:`PlanOutcome` rather than exceptions, keeping
"no schemes in these countries" distinct from "none you qualify for".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from pension.models.enums import PlanOutcome
from pension.models.estimate import PlanResult, ScoredScheme
from pension.models.scheme import SchemeRecord
from pension.models.user_profile import UserProfile
from pension.services.calculator import calculate_pensions_for_schemes
from pension.services.eligibility import EligibilityFilter, filter_by_country
from pension.services.insights import get_pension_insights
from pension.services.scoring import rank_schemes

logger = structlog.get_logger(__name__)


class PensionPlanner:
    """Runs eligibility, scoring, estimation and insights for a profile."""

    __slots__ = ("_eligibility", "_index", "_schemes")

    def __init__(
        self,
        schemes: Sequence[SchemeRecord],
        *,
        eligibility_filter: EligibilityFilter | None = None,
    ) -> None:
        self._schemes: tuple[SchemeRecord, ...] = tuple(schemes)
        self._index = {s.scheme_id: s for s in self._schemes}
        self._eligibility = eligibility_filter or EligibilityFilter()

    @property
    def schemes(self) -> tuple[SchemeRecord, ...]:
        return self._schemes

    def get_scheme(self, scheme_id: str) -> SchemeRecord | None:
        return self._index.get(scheme_id)

    def countries(self) -> list[str]:
        """Distinct countries present in the dataset, sorted."""
        return sorted({s.country for s in self._schemes if s.country})

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    def plan(
        self,
        profile: UserProfile,
        countries: Iterable[str] | None = None,
    ) -> PlanResult:
        """Filter, score and estimate the schemes *profile* can join.

        *countries* is the caller's display form of the requested
        countries, echoed back on the result; filtering uses
        ``profile.countries``.
        """
        requested = list(countries) if countries is not None else sorted(profile.countries or ())

        candidates: list[SchemeRecord] = list(self._schemes)
        if profile.countries is not None:
            candidates = filter_by_country(candidates, profile.countries)
            if not candidates:
                logger.info("planner.no_schemes_for_country", countries=requested)
                return PlanResult(
                    outcome=PlanOutcome.NO_SCHEMES_FOR_COUNTRY,
                    countries=requested,
                    profile=profile,
                )

        eligible = self._eligibility.filter_eligible(candidates, profile)
        if not eligible:
            logger.info(
                "planner.no_eligible_schemes",
                countries=requested,
                candidates=len(candidates),
            )
            return PlanResult(
                outcome=PlanOutcome.NO_ELIGIBLE_SCHEMES,
                countries=requested,
                profile=profile,
            )

        ranked = rank_schemes(eligible, profile)
        estimated = calculate_pensions_for_schemes(ranked, profile)
        insights = get_pension_insights(estimated, profile)

        logger.info(
            "planner.plan_complete",
            countries=requested,
            candidates=len(candidates),
            eligible=len(estimated),
            total_monthly_pension=insights.total_monthly_pension,
        )

        return PlanResult(
            outcome=PlanOutcome.OK,
            countries=requested,
            profile=profile,
            schemes=estimated,
            insights=insights,
        )

    def browse(
        self,
        countries: Sequence[str],
        profile: UserProfile | None = None,
    ) -> PlanResult:
        """List a country's schemes, optionally with estimates.

        No eligibility filtering or scoring is applied.  With a
        *profile*, every listed scheme gets an estimate and the result
        carries insights.
        """
        filtered = filter_by_country(self._schemes, countries)
        if not filtered:
            return PlanResult(
                outcome=PlanOutcome.NO_SCHEMES_FOR_COUNTRY,
                countries=list(countries),
                profile=profile,
            )

        if profile is None:
            return PlanResult(
                outcome=PlanOutcome.OK,
                countries=list(countries),
                schemes=[ScoredScheme.from_record(s) for s in filtered],
            )

        # India-only tips key off the profile's countries
        if profile.countries is None:
            profile = UserProfile(age=profile.age, annual_salary=profile.annual_salary, countries=countries)

        estimated = calculate_pensions_for_schemes(filtered, profile)
        return PlanResult(
            outcome=PlanOutcome.OK,
            countries=list(countries),
            profile=profile,
            schemes=estimated,
            insights=get_pension_insights(estimated, profile),
        )
