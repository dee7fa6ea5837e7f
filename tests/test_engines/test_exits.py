"""Tests for the exit strategy analyzer."""

from datetime import date
from decimal import Decimal

import pytest

from equityplan.engines.exits import ExitStrategyAnalyzer, is_long_term_sale
from equityplan.models.enums import ExitType, MarketConditions
from equityplan.models.exits import ExitParameters

EXIT_DATE = date(2026, 6, 1)


@pytest.fixture
def analyzer():
    return ExitStrategyAnalyzer()


@pytest.fixture
def nso_analysis(analyzer, nso_grant, flat_settings):
    """5,000 vested NSOs (strike $2, FMV $8) exiting on 2026-06-01 under the flat model."""
    return analyzer.analyze([nso_grant], flat_settings, ExitParameters(), as_of=EXIT_DATE)


def _strategy(analysis, name):
    return next(strategy for strategy in analysis.strategies if strategy.name == name)


class TestHoldingPeriod:
    def test_more_than_one_year(self):
        assert is_long_term_sale(date(2025, 6, 1), date(2026, 6, 2)) is True

    def test_exactly_one_year_is_short_term(self):
        assert is_long_term_sale(date(2025, 6, 1), date(2026, 6, 1)) is False


class TestIPO:
    def test_strategies(self, nso_analysis):
        ipo = nso_analysis.ipo
        assert ipo.exit_type == ExitType.IPO
        assert [s.name for s in ipo.strategies] == ["early_exercise", "exercise_at_exit", "staggered_exercise"]
        assert all(s.shares == 5000 for s in ipo.strategies)

        # $80 sale after lockup; early exercise is long-term at 20%
        assert _strategy(ipo, "early_exercise").total_tax == Decimal("121500")
        assert _strategy(ipo, "early_exercise").net_proceeds == Decimal("268500")
        assert _strategy(ipo, "exercise_at_exit").net_proceeds == Decimal("214500")
        # Only the first 1,500-share batch clears a year before the lockup ends
        assert _strategy(ipo, "staggered_exercise").total_tax == Decimal("153900")
        assert _strategy(ipo, "staggered_exercise").net_proceeds == Decimal("236100")

    def test_optimal(self, nso_analysis):
        assert nso_analysis.ipo.optimal_strategy == "early_exercise"
        assert nso_analysis.ipo.optimal_net_proceeds == Decimal("268500")
        assert nso_analysis.ipo.tax_savings == Decimal("32400")

    def test_lockup_comparison(self, nso_analysis):
        lockup = nso_analysis.lockup
        assert lockup.long_term_tax == Decimal("72000")
        assert lockup.short_term_tax == Decimal("126000")
        assert lockup.tax_savings == Decimal("54000")

    def test_rsus_are_excluded(self, analyzer, rsu_grant, flat_settings):
        analysis = analyzer.analyze([rsu_grant], flat_settings, as_of=date(2028, 6, 1))
        assert analysis.ipo.optimal_strategy is None
        assert all(s.shares == 0 for s in analysis.ipo.strategies)
        assert analysis.acquisition.optimal_strategy is not None


class TestAcquisition:
    def test_strategies(self, nso_analysis):
        acquisition = nso_analysis.acquisition
        assert _strategy(acquisition, "exercise_early").total_tax == Decimal("97500")
        assert _strategy(acquisition, "exercise_early").net_proceeds == Decimal("212500")
        assert _strategy(acquisition, "exercise_at_close").total_tax == Decimal("139500")
        assert acquisition.optimal_strategy == "exercise_early"
        assert acquisition.tax_savings == Decimal("42000")

    def test_terms(self, nso_analysis):
        terms = nso_analysis.acquisition_terms
        assert terms.gross_consideration == Decimal("320000")
        assert terms.cash_consideration == Decimal("224000")
        assert terms.stock_consideration == Decimal("96000")
        assert terms.earnout_amount == 0
        assert terms.earnout_savings == 0

    def test_earnout_deferral(self, analyzer, nso_grant, flat_settings):
        params = ExitParameters(earnout_fraction=Decimal("0.1"))
        terms = analyzer.analyze([nso_grant], flat_settings, params, as_of=EXIT_DATE).acquisition_terms

        assert terms.earnout_amount == Decimal("32000")
        assert terms.earnout_immediate_tax == Decimal("14400")
        assert float(terms.earnout_deferred_tax) == pytest.approx(14400 / 1.05**3)
        assert terms.earnout_savings == terms.earnout_immediate_tax - terms.earnout_deferred_tax

    def test_double_trigger_counts_time_vested_shares(self, analyzer, double_trigger_rsu, flat_settings):
        analysis = analyzer.analyze([double_trigger_rsu], flat_settings, as_of=date(2026, 1, 1))
        assert all(s.shares == 2400 for s in analysis.acquisition.strategies)


class TestSecondary:
    def test_strategies(self, nso_analysis):
        secondary = nso_analysis.secondary
        assert _strategy(secondary, "sell_all").net_proceeds == Decimal("106500")
        assert _strategy(secondary, "sell_partial").shares == 1250
        assert _strategy(secondary, "sell_partial").net_proceeds == Decimal("26625")
        assert [s.shares for s in secondary.strategies] == [5000, 1250, 5000]
        # Later batches sell at 5% and 10% above the first price
        assert _strategy(secondary, "staggered_sales").net_proceeds == Decimal("111900")
        assert secondary.optimal_strategy == "staggered_sales"
        assert secondary.tax_savings == Decimal("5400")

    def test_terms(self, nso_analysis):
        assert nso_analysis.secondary_terms.discount == Decimal("0.2")
        assert nso_analysis.secondary_terms.value_loss == Decimal("40000")


class TestRiskFactors:
    def test_scores(self, nso_analysis):
        risk = nso_analysis.risk_factors
        assert risk.timing.score == 1
        # $400k of equity against $500k net worth
        assert risk.concentration.score == 2
        assert risk.market_conditions.score == 2
        assert risk.overall_score == pytest.approx(5 / 3)

    def test_unvested_concentrated_unfavorable(self, analyzer, iso_grant, flat_settings):
        params = ExitParameters(
            ipo_multiplier=Decimal("100"),
            market_conditions=MarketConditions.UNFAVORABLE,
        )
        risk = analyzer.analyze([iso_grant], flat_settings, params, as_of=date(2023, 6, 1)).risk_factors
        assert (risk.timing.score, risk.concentration.score, risk.market_conditions.score) == (3, 3, 3)
        assert "Less than 50%" in risk.timing.notes

    def test_zero_net_worth(self, analyzer, nso_grant, flat_settings):
        params = ExitParameters(net_worth=Decimal("0"))
        risk = analyzer.analyze([nso_grant], flat_settings, params, as_of=EXIT_DATE).risk_factors
        assert risk.concentration.score == 3


class TestRecommendation:
    def test_highest_net_proceeds_wins(self, nso_analysis):
        recommended = nso_analysis.recommended
        assert recommended.exit_type == ExitType.IPO
        assert recommended.strategy == "early_exercise"
        assert recommended.net_proceeds == Decimal("268500")
        assert recommended.tax_savings == Decimal("32400")

    def test_nothing_vested(self, analyzer, iso_grant, flat_settings):
        analysis = analyzer.analyze([iso_grant], flat_settings, as_of=date(2023, 6, 1))
        assert analysis.recommended is None
        assert analysis.ipo.optimal_strategy is None
        assert analysis.acquisition_terms.gross_consideration == 0

    def test_exit_date_overrides_as_of(self, analyzer, iso_grant, flat_settings):
        params = ExitParameters(exit_date=date(2027, 1, 1))
        analysis = analyzer.analyze([iso_grant], flat_settings, params, as_of=date(2023, 6, 1))
        assert analysis.recommended is not None
        assert all(s.shares == 10000 for s in analysis.acquisition.strategies)
        # Timing risk is still judged on today's vesting
        assert analysis.risk_factors.timing.score == 3

    def test_empty_portfolio(self, analyzer, flat_settings):
        analysis = analyzer.analyze([], flat_settings, as_of=EXIT_DATE)
        assert analysis.recommended is None
        assert analysis.risk_factors.concentration.score == 1
