"""Tests for the equity tax engine."""

from decimal import Decimal

import pytest

from equityplan.engines.tax import EquityTaxEngine
from equityplan.models.enums import FilingStatus, GrantType, TaxModel
from equityplan.models.grant import Grant
from equityplan.models.tax import TaxSettings


@pytest.fixture
def engine():
    return EquityTaxEngine()


class TestOrdinaryIncomeTax:
    def test_bracketed_stacks_on_base(self, engine, bracket_settings):
        # $150k base already sits in the 24% bracket
        tax = engine.compute_ordinary_income_tax(Decimal("10000"), Decimal("150000"), bracket_settings)
        assert tax == Decimal("2400")

    def test_bracketed_crosses_boundary(self, engine, bracket_settings):
        tax = engine.compute_ordinary_income_tax(Decimal("100000"), Decimal("150000"), bracket_settings)
        # 47,300 at 24% + 52,700 at 32%
        assert tax == Decimal("11352") + Decimal("16864")

    def test_flat(self, engine, flat_settings):
        tax = engine.compute_ordinary_income_tax(Decimal("10000"), Decimal("150000"), flat_settings)
        assert tax == Decimal("3500")

    def test_zero_amount(self, engine, bracket_settings):
        assert engine.compute_ordinary_income_tax(Decimal("0"), Decimal("150000"), bracket_settings) == 0

    def test_regular_tax_on_income(self, engine, bracket_settings):
        tax = engine.compute_ordinary_income_tax(Decimal("150000"), Decimal("0"), bracket_settings)
        assert tax == Decimal("28847")


class TestCapitalGainsTax:
    def test_ltcg_stacking(self, engine, bracket_settings):
        # 8,350 fills the 0% bracket up to 48,350, the rest is taxed at 15%
        tax = engine.compute_capital_gains_tax(Decimal("10000"), Decimal("40000"), True, bracket_settings)
        assert tax == Decimal("247.5")

    def test_ltcg_all_in_zero_bracket(self, engine, bracket_settings):
        assert engine.compute_capital_gains_tax(Decimal("5000"), Decimal("10000"), True, bracket_settings) == 0

    def test_short_term_is_ordinary(self, engine, bracket_settings):
        tax = engine.compute_capital_gains_tax(Decimal("10000"), Decimal("150000"), False, bracket_settings)
        assert tax == Decimal("2400")

    def test_flat_threshold_rate(self, engine, flat_settings):
        assert engine.compute_capital_gains_tax(Decimal("10000"), Decimal("20000"), True, flat_settings) == 0
        assert engine.compute_capital_gains_tax(
            Decimal("10000"), Decimal("150000"), True, flat_settings
        ) == Decimal("1500")
        assert engine.compute_capital_gains_tax(
            Decimal("10000"), Decimal("500000"), True, flat_settings
        ) == Decimal("2000")

    def test_losses_not_taxed(self, engine, bracket_settings):
        assert engine.compute_capital_gains_tax(Decimal("-500"), Decimal("150000"), True, bracket_settings) == 0


class TestComputeTaxNSO:
    def test_flat_long_term(self, engine, nso_grant, flat_settings):
        result = engine.compute_tax(nso_grant, None, Decimal("15"), 5000, True, flat_settings)

        assert result.federal.ordinary_income == Decimal("30000")
        assert result.federal.long_term_gains == Decimal("35000")
        assert result.federal.short_term_gains == 0
        assert result.federal.federal_tax == Decimal("15750")
        assert result.state.state_tax == Decimal("6500")
        assert result.amt is None
        assert result.totals.exercise_cost == Decimal("10000")
        assert result.totals.gross_proceeds == Decimal("75000")
        assert result.totals.total_income == Decimal("65000")
        assert result.totals.total_tax == Decimal("22250")
        assert result.totals.net_proceeds == Decimal("42750")
        assert result.totals.effective_rate == pytest.approx(22250 / 65000)

    def test_short_term_gain(self, engine, nso_grant, flat_settings):
        result = engine.compute_tax(nso_grant, None, Decimal("15"), 5000, False, flat_settings)
        assert result.federal.short_term_gains == Decimal("35000")
        assert result.federal.long_term_gains == 0
        assert result.federal.federal_tax == Decimal("22750")

    def test_sale_below_fmv(self, engine, nso_grant, flat_settings):
        result = engine.compute_tax(nso_grant, None, Decimal("5"), 1000, True, flat_settings)
        assert result.federal.ordinary_income == Decimal("6000")
        assert result.federal.capital_gains_tax == 0

    def test_explicit_exercise_price(self, engine, nso_grant, flat_settings):
        result = engine.compute_tax(nso_grant, Decimal("4"), Decimal("15"), 1000, True, flat_settings)
        assert result.totals.exercise_cost == Decimal("4000")
        assert result.federal.ordinary_income == Decimal("4000")


class TestComputeTaxISO:
    def test_qualifying_with_amt(self, engine, bracket_settings):
        grant = Grant(
            grant_type=GrantType.ISO,
            shares_total=10000,
            strike_price=Decimal("1"),
            current_fmv=Decimal("101"),
        )
        result = engine.compute_tax(grant, None, Decimal("101"), 10000, True, bracket_settings)

        assert result.federal.ordinary_income == 0
        assert result.federal.long_term_gains == Decimal("1000000")
        assert result.amt is not None
        assert result.amt.regular_tax == Decimal("28847")
        assert result.amt.net_amt_due == Decimal("288371")
        assert result.totals.total_tax == (
            result.federal.federal_tax + result.state.state_tax + result.amt.net_amt_due
        )

    def test_qualifying_without_spread_skips_amt(self, engine, iso_grant, bracket_settings):
        result = engine.compute_tax(iso_grant, None, Decimal("10"), 1000, True, bracket_settings)
        assert result.amt is None
        assert result.federal.long_term_gains == Decimal("9000")

    def test_prior_credit_never_makes_tax_negative(self, engine, flat_settings):
        grant = Grant(
            grant_type=GrantType.ISO,
            shares_total=1000,
            strike_price=Decimal("1"),
            current_fmv=Decimal("2"),
        )
        settings = flat_settings.model_copy(update={"prior_amt_credit": Decimal("5000")})
        result = engine.compute_tax(grant, None, Decimal("10"), 1000, True, settings)

        assert result.amt is not None
        assert result.amt.amt_income == Decimal("1000")
        assert result.amt.amt_credit_used == Decimal("0")
        assert result.amt.net_amt_due == Decimal("0")
        assert result.amt.amt_credit == Decimal("5000")
        # 9,000 long-term gain: 15% federal + 10% state
        assert result.totals.total_tax == Decimal("2250")
        assert result.totals.effective_rate > 0

    def test_disqualifying_spread_is_ordinary(self, engine, iso_grant, flat_settings):
        grant = iso_grant.model_copy(update={"current_fmv": Decimal("5")})
        result = engine.compute_tax(grant, None, Decimal("10"), 1000, False, flat_settings)

        assert result.amt is None
        assert result.federal.ordinary_income == Decimal("4000")
        assert result.federal.short_term_gains == Decimal("5000")
        assert result.federal.federal_tax == Decimal("3150")


class TestComputeTaxRSU:
    def test_vest_value_is_ordinary(self, engine, rsu_grant, flat_settings):
        result = engine.compute_tax(rsu_grant, Decimal("7"), Decimal("60"), 100, True, flat_settings)

        assert result.totals.exercise_cost == 0
        assert result.federal.ordinary_income == Decimal("5000")
        assert result.federal.long_term_gains == Decimal("1000")
        assert result.federal.federal_tax == Decimal("1750") + Decimal("150")
        assert result.state.state_tax == Decimal("600")


class TestComputeTaxEdgeCases:
    def test_zero_shares(self, engine, nso_grant, flat_settings):
        result = engine.compute_tax(nso_grant, None, Decimal("15"), 0, True, flat_settings)
        assert result.totals.total_tax == 0
        assert result.totals.effective_rate == 0.0

    def test_negative_inputs_clamped(self, engine, nso_grant, flat_settings):
        result = engine.compute_tax(nso_grant, Decimal("-1"), Decimal("-5"), -10, True, flat_settings)
        assert result.totals.gross_proceeds == 0
        assert result.totals.exercise_cost == 0

    def test_default_settings(self, engine, nso_grant):
        result = engine.compute_tax(nso_grant, None, Decimal("15"), 100, True)
        assert result.assumptions == TaxSettings()

    def test_loss_has_no_state_tax(self, engine, nso_grant, flat_settings):
        result = engine.compute_tax(nso_grant, None, Decimal("1"), 100, True, flat_settings)
        assert result.totals.total_income == Decimal("-100")
        assert result.state.state_tax == 0
        assert result.totals.effective_rate == 0.0


class TestStateTax:
    def test_single_residence(self, engine):
        settings = TaxSettings(state_of_residence="NY", state_rate=Decimal("0.06"))
        state = engine.compute_state_tax(Decimal("10000"), settings)
        assert state.state_tax == Decimal("600")
        assert [entry.state_code for entry in state.state_breakdown] == ["NY"]

    def test_allocations_with_rates(self, engine):
        settings = TaxSettings(
            state_allocations={"CA": Decimal("0.6"), "NY": Decimal("0.4")},
            state_rates={"CA": Decimal("0.10"), "NY": Decimal("0.05")},
        )
        state = engine.compute_state_tax(Decimal("100000"), settings)
        assert state.state_tax == Decimal("8000")
        assert sum(entry.allocation for entry in state.state_breakdown) == 1

    def test_allocations_renormalized(self, engine):
        settings = TaxSettings(state_allocations={"CA": Decimal("3"), "WA": Decimal("1")})
        allocations = dict(engine._normalized_allocations(settings))
        assert allocations["CA"] == Decimal("0.75")
        assert allocations["WA"] == Decimal("0.25")

    def test_state_rate_default_for_unlisted_state(self, engine):
        settings = TaxSettings(
            state_allocations={"TX": Decimal("1")},
            state_rates={"CA": Decimal("0.13")},
            state_rate=Decimal("0"),
        )
        assert engine.compute_state_tax(Decimal("50000"), settings).state_tax == 0

    def test_filing_status_other_than_single(self, engine):
        settings = TaxSettings(filing_status=FilingStatus.MFJ, tax_model=TaxModel.BRACKETED)
        tax = engine.compute_ordinary_income_tax(Decimal("10000"), Decimal("150000"), settings)
        assert tax == Decimal("2200")
