"""Tests for formula classification and pension estimation."""

from __future__ import annotations

import pytest

from pension.models.enums import EstimateType, FormulaKind
from pension.services import calculator
from pension.services.calculator import (
    calculate_pension,
    calculate_pensions_for_schemes,
    classify_formula,
    compound_corpus,
    extract_number,
    extract_range,
    round_half_up,
)


# -----------------------------------------------------------------------
# Text helpers
# -----------------------------------------------------------------------


class TestTextHelpers:
    def test_extract_number_strips_commas(self) -> None:
        assert extract_number("₹3,000 per month") == 3000

    def test_extract_number_skips_leading_comma(self) -> None:
        assert extract_number("pension, ₹3,000 per month") == 3000

    def test_extract_number_without_digits_is_zero(self) -> None:
        assert extract_number("no amount here") == 0, "missing numbers degrade to 0"

    def test_extract_range(self) -> None:
        bounds = extract_range("₹1,000–₹5,000 per month")
        assert bounds is not None
        assert (bounds.min, bounds.max) == (1000, 5000)

    def test_extract_range_needs_en_dash(self) -> None:
        assert extract_range("₹1,000-₹5,000 per month") is None

    def test_round_half_up(self) -> None:
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_compound_corpus_zero_years(self) -> None:
        assert compound_corpus(12_000, 0.08, 0) == 0.0

    def test_compound_corpus_matches_yearly_loop(self) -> None:
        expected = 0.0
        for year in range(1, 21):
            expected += 1_000 * (1.085) ** year
        assert compound_corpus(1_000, 0.085, 20) == pytest.approx(expected)


# -----------------------------------------------------------------------
# Classification
# -----------------------------------------------------------------------


class TestClassifyFormula:
    @pytest.mark.parametrize(
        ("formula", "expected"),
        [
            ("₹3,000 per month", FormulaKind.FIXED_MONTHLY),
            ("Assured ₹1,000–₹9,250 per month", FormulaKind.RANGE_BASED),
            ("(Pensionable Salary x Pensionable Service) / 70", FormulaKind.EPS_FORMULA),
            ("Balance accumulates from contributions", FormulaKind.EPF_ACCUMULATION),
            ("Market-linked; part of the corpus buys an annuity", FormulaKind.NPS_MARKET_LINKED),
            ("Flat-rate basic pension", FormulaKind.DEFAULT),
            ("", FormulaKind.DEFAULT),
        ],
    )
    def test_text_rules(self, make_scheme, formula: str, expected: FormulaKind) -> None:
        assert classify_formula(make_scheme(pension_formula=formula)) == expected

    def test_co_contribution_scheme_by_id(self, make_scheme) -> None:
        scheme = make_scheme("PM_SYM", pension_formula="Matched contribution by the Government")
        assert classify_formula(scheme) == FormulaKind.FIXED_CONTRIBUTION

    def test_declared_kind_overrides_text(self, make_scheme) -> None:
        scheme = make_scheme(
            "APY",
            pension_formula="₹1,000–₹5,000 per month",
            formula_kind=FormulaKind.FIXED_CONTRIBUTION,
        )
        assert classify_formula(scheme) == FormulaKind.FIXED_CONTRIBUTION


# -----------------------------------------------------------------------
# Estimation models
# -----------------------------------------------------------------------


class TestEstimates:
    def test_fixed_monthly(self, make_scheme, make_profile) -> None:
        estimate = calculate_pension(make_scheme(pension_formula="₹3,000 per month"), make_profile())
        assert estimate.type == EstimateType.FIXED_MONTHLY
        assert estimate.monthly_pension == 3000
        assert estimate.annual_pension == 36000

    def test_fixed_monthly_with_comma_before_amount(self, make_scheme, make_profile) -> None:
        scheme = make_scheme(pension_formula="Assured pension, ₹3,000 per month")
        estimate = calculate_pension(scheme, make_profile())
        assert estimate.type == EstimateType.FIXED_MONTHLY
        assert estimate.monthly_pension == 3000

    @pytest.mark.parametrize(
        ("salary", "expected"),
        [(250_000, 1000), (300_000, 1000), (600_000, 3000), (1_000_000, 3000), (1_200_000, 5000)],
    )
    def test_range_tiers(self, make_scheme, make_profile, salary: float, expected: float) -> None:
        scheme = make_scheme(pension_formula="₹1,000–₹5,000 per month")
        estimate = calculate_pension(scheme, make_profile(annual_salary=salary))
        assert estimate.type == EstimateType.RANGE_BASED
        assert estimate.monthly_pension == expected
        assert estimate.annual_pension == expected * 12
        assert estimate.range is not None and estimate.range.max == 5000

    def test_eps_caps_pensionable_salary(self, make_scheme, make_profile) -> None:
        scheme = make_scheme(pension_formula="Pensionable Salary x Pensionable Service / 70")
        # monthly salary 20000 is capped at 15000; 30 years of service
        estimate = calculate_pension(scheme, make_profile(age=30, annual_salary=240_000))
        assert estimate.type == EstimateType.EPS_FORMULA
        assert estimate.monthly_pension == 3749, "3748.5 rounds half up"
        assert estimate.annual_pension == estimate.monthly_pension * 12

    def test_epf_reports_only_lump_sum(self, make_scheme, make_profile) -> None:
        scheme = make_scheme(pension_formula="Balance accumulates from contributions")
        estimate = calculate_pension(scheme, make_profile(age=30, annual_salary=600_000))
        assert estimate.monthly_pension == 0
        assert estimate.annual_pension == 0
        expected = compound_corpus(50_000 * 0.24 * 12, 0.085, 30)
        assert estimate.lump_sum_corpus == round_half_up(expected)

    def test_nps_splits_corpus(self, make_scheme, make_profile) -> None:
        scheme = make_scheme(pension_formula="market-linked corpus")
        estimate = calculate_pension(scheme, make_profile(age=30, annual_salary=600_000))
        corpus = compound_corpus(50_000 * 0.20 * 12, 0.10, 30)
        annuity = corpus - corpus * 0.6
        assert estimate.lump_sum_corpus == round_half_up(corpus * 0.6)
        assert estimate.annuity_corpus == round_half_up(annuity)
        assert estimate.monthly_pension == round_half_up(annuity * 0.06 / 12)
        assert estimate.annual_pension == estimate.monthly_pension * 12

    def test_fixed_contribution_apy(self, make_scheme, make_profile) -> None:
        scheme = make_scheme("APY", formula_kind=FormulaKind.FIXED_CONTRIBUTION)
        estimate = calculate_pension(scheme, make_profile(age=30))
        corpus = compound_corpus(150 * 12, 0.08, 30)
        assert estimate.type == EstimateType.FIXED_CONTRIBUTION
        assert estimate.annuity_corpus == round_half_up(corpus)
        assert estimate.monthly_pension == round_half_up(corpus * 0.06 / 12)

    def test_default_is_forty_percent_of_salary(self, make_scheme, make_profile) -> None:
        estimate = calculate_pension(make_scheme(), make_profile(annual_salary=600_000))
        assert estimate.type == EstimateType.DEFAULT
        assert estimate.monthly_pension == 20_000

    def test_no_years_left_gives_zero_corpus(self, make_scheme, make_profile) -> None:
        scheme = make_scheme(pension_formula="market-linked corpus")
        estimate = calculate_pension(scheme, make_profile(age=65))
        assert estimate.monthly_pension == 0
        assert estimate.lump_sum_corpus == 0

    def test_narrative_uses_thousands_grouping(self, make_scheme, make_profile) -> None:
        estimate = calculate_pension(make_scheme(), make_profile(annual_salary=600_000))
        assert "₹20,000" in estimate.calculation


class TestFailureIsolation:
    def test_estimator_exception_yields_error_estimate(
        self, make_scheme, make_profile, monkeypatch
    ) -> None:
        def boom(scheme, profile):
            raise RuntimeError("bad formula")

        monkeypatch.setitem(calculator._ESTIMATORS, FormulaKind.DEFAULT, boom)
        estimate = calculate_pension(make_scheme(), make_profile())
        assert estimate.type == EstimateType.ERROR
        assert estimate.monthly_pension == 0
        assert estimate.calculation == "Unable to calculate pension for this scheme"

    def test_batch_survives_one_failure(self, make_scheme, make_profile, monkeypatch) -> None:
        def boom(scheme, profile):
            raise ValueError("nope")

        monkeypatch.setitem(calculator._ESTIMATORS, FormulaKind.DEFAULT, boom)
        schemes = [make_scheme("A", pension_formula="₹3,000 per month"), make_scheme("B")]
        results = calculate_pensions_for_schemes(schemes, make_profile())
        assert [s.scheme_id for s in results] == ["A", "B"], "order must be preserved"
        assert results[0].pension_calculation.monthly_pension == 3000
        assert results[1].pension_calculation.type == EstimateType.ERROR

    def test_inputs_are_not_mutated(self, make_scheme, make_profile) -> None:
        scheme = make_scheme()
        results = calculate_pensions_for_schemes([scheme], make_profile())
        assert results[0] is not scheme
        assert not hasattr(scheme, "pension_calculation")
