"""End-to-end planning tests over the bundled dataset."""

from __future__ import annotations

import pytest

from pension.models.enums import EstimateType, PlanOutcome
from pension.services.eligibility import EligibilityFilter
from pension.services.planner import PensionPlanner


@pytest.fixture
def planner(bundled_schemes) -> PensionPlanner:
    return PensionPlanner(bundled_schemes)


class TestPlan:
    def test_young_middle_income_in_india(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(age=30, annual_salary=600_000, countries=["India"]))
        assert result.outcome == PlanOutcome.OK
        assert result.found
        assert [s.scheme_id for s in result.schemes] == ["NPS_Tier_I", "APY", "EPF", "EPS"]
        assert [s.relevance_score for s in result.schemes] == [6, 3, 2, 2]
        assert all(s.pension_calculation is not None for s in result.schemes)
        assert result.insights is not None

    def test_estimates_follow_formula_kind(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(age=30, annual_salary=600_000, countries=["India"]))
        types = {s.scheme_id: s.pension_calculation.type for s in result.schemes}
        assert types == {
            "NPS_Tier_I": EstimateType.NPS_MARKET_LINKED,
            "APY": EstimateType.FIXED_CONTRIBUTION,
            "EPF": EstimateType.EPF_ACCUMULATION,
            "EPS": EstimateType.EPS_FORMULA,
        }

    def test_45_year_old_excluded_from_early_career_schemes(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(age=45, annual_salary=600_000, countries=["India"]))
        ids = {s.scheme_id for s in result.schemes}
        assert ids.isdisjoint({"APY", "PM_SYM", "PMKMY", "PM_LVM"})
        assert "NPS_Tier_I" in ids

    def test_low_income_farmer(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(age=30, annual_salary=200_000, countries=["india"]))
        by_id = {s.scheme_id: s for s in result.schemes}
        assert by_id["PMKMY"].pension_calculation.monthly_pension == 3000
        assert by_id["PMKMY"].pension_calculation.annual_pension == 36000

    def test_senior_range_scheme(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(age=65, annual_salary=1_200_000, countries=["India"]))
        by_id = {s.scheme_id: s for s in result.schemes}
        assert "NSAP_IGNOAPS" not in by_id, "BPL scheme needs salary <= 3 lakh"
        assert by_id["PMVVY"].pension_calculation.monthly_pension == 9250

    def test_unknown_country(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(countries=["Atlantis"]))
        assert result.outcome == PlanOutcome.NO_SCHEMES_FOR_COUNTRY
        assert result.schemes == []
        assert result.insights is None

    def test_no_eligible_schemes_is_distinct(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(age=10, countries=["Japan"]))
        assert result.outcome == PlanOutcome.NO_ELIGIBLE_SCHEMES
        assert not result.found

    def test_without_country_filter_uses_whole_dataset(self, planner, make_profile) -> None:
        result = planner.plan(make_profile(age=30, annual_salary=600_000))
        countries = {s.country for s in result.schemes}
        assert {"India", "Japan", "USA", "UK"} <= countries

    def test_countries_echoed_as_given(self, planner, make_profile) -> None:
        profile = make_profile(countries=["India"])
        result = planner.plan(profile, countries=["India"])
        assert result.countries == ["India"]

    def test_intersect_mode_is_stricter(self, make_scheme, make_profile) -> None:
        scheme = make_scheme("X", income_criteria="BPL and income cap")
        loose = PensionPlanner([scheme])
        strict = PensionPlanner([scheme], eligibility_filter=EligibilityFilter("intersect"))
        profile = make_profile(annual_salary=400_000)
        assert loose.plan(profile).found
        assert strict.plan(profile).outcome == PlanOutcome.NO_ELIGIBLE_SCHEMES


class TestBrowse:
    def test_listing_without_profile(self, planner) -> None:
        result = planner.browse(["Japan"])
        assert result.found
        assert [s.scheme_id for s in result.schemes] == ["JP_NATIONAL_PENSION", "JP_EPI"]
        assert all(s.pension_calculation is None for s in result.schemes)
        assert result.insights is None

    def test_listing_with_profile_skips_eligibility(self, planner, make_profile) -> None:
        result = planner.browse(["Japan"], make_profile(age=10, annual_salary=600_000))
        assert len(result.schemes) == 2, "browse never filters by eligibility"
        assert all(s.pension_calculation is not None for s in result.schemes)
        assert result.insights is not None

    def test_non_india_listing_gets_no_india_tips(self, planner, make_profile) -> None:
        result = planner.browse(["Japan"], make_profile(age=30, annual_salary=200_000))
        assert result.profile.countries == frozenset({"japan"})
        assert result.insights.recommended_schemes == []
        assert not any("PM-SYM" in tip or "PMKMY" in tip for tip in result.insights.tips)

    def test_unknown_country(self, planner) -> None:
        assert planner.browse(["Atlantis"]).outcome == PlanOutcome.NO_SCHEMES_FOR_COUNTRY


class TestLookup:
    def test_get_scheme(self, planner) -> None:
        assert planner.get_scheme("EPF").name == "Employees' Provident Fund"
        assert planner.get_scheme("NOPE") is None

    def test_countries(self, planner) -> None:
        assert planner.countries() == ["India", "Japan", "UK", "USA"]
