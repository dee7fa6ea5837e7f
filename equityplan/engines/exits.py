"""Exit strategy analysis.

Prices each exit type (IPO, acquisition, secondary sale) off the grants'
current FMV, taxes a few exercise or selling strategies for each with the
regular tax engine, and picks the one with the highest net proceeds. A sale
is long-term when it happens more than one year after the exercise.
"""

import logging
import math
from datetime import date
from decimal import Decimal

from equityplan.engines.dates import add_days, add_months, add_years
from equityplan.engines.tax import EquityTaxEngine
from equityplan.engines.vesting import VestingEngine
from equityplan.models.enums import ExitType, MarketConditions
from equityplan.models.exits import (
    AcquisitionTerms,
    ExitAnalysis,
    ExitParameters,
    ExitRiskFactors,
    ExitStrategyOutcome,
    ExitTypeAnalysis,
    LockupComparison,
    RecommendedExit,
    RiskFactor,
    SecondaryTerms,
)
from equityplan.models.grant import Grant
from equityplan.models.tax import TaxSettings

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# IPO staggered exercise: (months before the IPO, fraction of shares); the last batch takes the rest
IPO_STAGGERED_BATCHES: list[tuple[int, Decimal]] = [
    (12, Decimal("0.3")),
    (6, Decimal("0.3")),
    (2, Decimal("0.4")),
]
IPO_EARLY_EXERCISE_MONTHS = 12

# Early exercise ahead of an acquisition or secondary sale, long enough for long-term treatment
EARLY_EXERCISE_LEAD_MONTHS = 13

# Secondary staggered sales: (months after the first sale, fraction of shares, price factor)
SECONDARY_STAGGERED_BATCHES: list[tuple[int, Decimal, Decimal]] = [
    (0, Decimal("0.4"), Decimal("1")),
    (4, Decimal("0.3"), Decimal("1.05")),
    (8, Decimal("0.3"), Decimal("1.10")),
]

EARNOUT_DEFERRAL_YEARS = 3
EARNOUT_DISCOUNT_RATE = Decimal("0.05")

MARKET_RISK: dict[MarketConditions, tuple[int, str]] = {
    MarketConditions.FAVORABLE: (1, "Current market conditions are favorable for exits, reducing market risk."),
    MarketConditions.NEUTRAL: (2, "Current market conditions are neutral, presenting moderate market risk."),
    MarketConditions.UNFAVORABLE: (3, "Current market conditions are challenging for exits, increasing market risk."),
}

_Holding = tuple[Grant, int]


def is_long_term_sale(exercise_date: date, sale_date: date) -> bool:
    """True when the sale is more than one year after the exercise."""
    return sale_date > add_years(exercise_date, 1)


def _split(shares: int, fractions: list[Decimal]) -> list[int]:
    """Floor each fraction of *shares*; the last part absorbs the remainder."""
    parts = [math.floor(shares * fraction) for fraction in fractions[:-1]]
    parts.append(shares - sum(parts))
    return parts


class ExitStrategyAnalyzer:
    """Compares tax and net proceeds across exit types and strategies for a portfolio."""

    def __init__(
        self,
        tax_engine: EquityTaxEngine | None = None,
        vesting_engine: VestingEngine | None = None,
    ) -> None:
        self.tax_engine = tax_engine or EquityTaxEngine()
        self.vesting_engine = vesting_engine or VestingEngine()

    def analyze(
        self,
        grants: list[Grant],
        tax_settings: TaxSettings | None = None,
        params: ExitParameters | None = None,
        as_of: date | None = None,
    ) -> ExitAnalysis:
        """Analyze every exit type and recommend the one with the highest net proceeds.

        Shares are those vested on the exit date (``params.exit_date``, default
        *as_of*). Double-trigger RSUs count their time-vested shares, since the
        exit is their liquidity event.
        """
        as_of = as_of or date.today()
        settings = tax_settings or TaxSettings()
        params = params or ExitParameters()
        exit_date = params.exit_date or as_of

        holdings = [(grant, self._shares_at_exit(grant, exit_date)) for grant in grants]
        holdings = [(grant, shares) for grant, shares in holdings if shares > 0]
        option_holdings = [(grant, shares) for grant, shares in holdings if grant.is_option]

        ipo, lockup = self.analyze_ipo(option_holdings, settings, params, exit_date)
        acquisition, acquisition_terms = self.analyze_acquisition(holdings, settings, params, exit_date)
        secondary, secondary_terms = self.analyze_secondary(holdings, settings, params, exit_date)

        return ExitAnalysis(
            ipo=ipo,
            acquisition=acquisition,
            secondary=secondary,
            lockup=lockup,
            acquisition_terms=acquisition_terms,
            secondary_terms=secondary_terms,
            risk_factors=self.risk_factors(grants, params, as_of),
            recommended=self._recommend([ipo, acquisition, secondary]),
        )

    # ------------------------------------------------------------------
    # Exit types
    # ------------------------------------------------------------------

    def analyze_ipo(
        self,
        holdings: list[_Holding],
        settings: TaxSettings,
        params: ExitParameters,
        exit_date: date,
    ) -> tuple[ExitTypeAnalysis, LockupComparison]:
        """Exercise a year early, at the IPO, or in batches; every sale happens when the lockup ends."""
        lockup_end = add_days(exit_date, params.lockup_days)
        early = ExitStrategyOutcome(name="early_exercise")
        at_exit = ExitStrategyOutcome(name="exercise_at_exit")
        staggered = ExitStrategyOutcome(name="staggered_exercise")
        lockup = LockupComparison()

        for grant, shares in holdings:
            price = grant.current_fmv * params.ipo_multiplier
            early_date = add_months(exit_date, -IPO_EARLY_EXERCISE_MONTHS)
            self._add_sale(early, grant, price, shares, is_long_term_sale(early_date, lockup_end), settings)
            self._add_sale(at_exit, grant, price, shares, is_long_term_sale(exit_date, lockup_end), settings)

            batch_shares = _split(shares, [fraction for _, fraction in IPO_STAGGERED_BATCHES])
            for (months_before, _), batch in zip(IPO_STAGGERED_BATCHES, batch_shares):
                exercise_date = add_months(exit_date, -months_before)
                self._add_sale(
                    staggered, grant, price, batch, is_long_term_sale(exercise_date, lockup_end), settings
                )

            gain = max(price - grant.current_fmv, ZERO) * shares
            lockup.long_term_tax += self.tax_engine.compute_capital_gains_tax(gain, settings.income, True, settings)
            lockup.short_term_tax += self.tax_engine.compute_capital_gains_tax(
                gain, settings.income, False, settings
            )

        lockup.tax_savings = lockup.short_term_tax - lockup.long_term_tax
        return self._summarize(ExitType.IPO, [early, at_exit, staggered]), lockup

    def analyze_acquisition(
        self,
        holdings: list[_Holding],
        settings: TaxSettings,
        params: ExitParameters,
        exit_date: date,
    ) -> tuple[ExitTypeAnalysis, AcquisitionTerms]:
        """Exercise early (long-term at close) or at the close, plus cash/stock split and earnout deferral."""
        early_date = add_months(exit_date, -EARLY_EXERCISE_LEAD_MONTHS)
        early = ExitStrategyOutcome(name="exercise_early")
        at_close = ExitStrategyOutcome(name="exercise_at_close")
        gross = ZERO

        for grant, shares in holdings:
            price = grant.current_fmv * params.acquisition_multiplier
            gross += price * shares
            self._add_sale(early, grant, price, shares, is_long_term_sale(early_date, exit_date), settings)
            self._add_sale(at_close, grant, price, shares, False, settings)

        earnout = gross * params.earnout_fraction
        immediate_tax = earnout * (settings.federal_rate + settings.state_rate)
        deferred_tax = immediate_tax / (1 + EARNOUT_DISCOUNT_RATE) ** EARNOUT_DEFERRAL_YEARS
        cash = gross * params.cash_fraction
        terms = AcquisitionTerms(
            gross_consideration=gross,
            cash_consideration=cash,
            stock_consideration=gross - cash,
            earnout_amount=earnout,
            earnout_immediate_tax=immediate_tax,
            earnout_deferred_tax=deferred_tax,
            earnout_savings=immediate_tax - deferred_tax,
        )
        return self._summarize(ExitType.ACQUISITION, [early, at_close]), terms

    def analyze_secondary(
        self,
        holdings: list[_Holding],
        settings: TaxSettings,
        params: ExitParameters,
        exit_date: date,
    ) -> tuple[ExitTypeAnalysis, SecondaryTerms]:
        """Sell everything, sell a fraction, or sell in batches at a discount to the primary price."""
        early_date = add_months(exit_date, -EARLY_EXERCISE_LEAD_MONTHS)
        sell_all = ExitStrategyOutcome(name="sell_all")
        sell_partial = ExitStrategyOutcome(name="sell_partial")
        staggered = ExitStrategyOutcome(name="staggered_sales")
        value_loss = ZERO

        for grant, shares in holdings:
            primary_price = grant.current_fmv * params.secondary_multiplier
            price = primary_price * (1 - params.secondary_discount)
            value_loss += (primary_price - price) * shares

            long_term = is_long_term_sale(early_date, exit_date)
            self._add_sale(sell_all, grant, price, shares, long_term, settings)
            partial = math.floor(shares * params.secondary_sale_fraction)
            self._add_sale(sell_partial, grant, price, partial, long_term, settings)

            batch_shares = _split(shares, [fraction for _, fraction, _ in SECONDARY_STAGGERED_BATCHES])
            for (months_after, _, factor), batch in zip(SECONDARY_STAGGERED_BATCHES, batch_shares):
                sale_date = add_months(exit_date, months_after)
                self._add_sale(
                    staggered, grant, price * factor, batch, is_long_term_sale(early_date, sale_date), settings
                )

        terms = SecondaryTerms(discount=params.secondary_discount, value_loss=value_loss)
        return self._summarize(ExitType.SECONDARY, [sell_all, sell_partial, staggered]), terms

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------

    def risk_factors(self, grants: list[Grant], params: ExitParameters, as_of: date) -> ExitRiskFactors:
        total_shares = sum(grant.shares_total for grant in grants)
        vested = sum(self.vesting_engine.evaluate_at(grant, as_of).vested_shares for grant in grants)
        vested_fraction = vested / total_shares if total_shares > 0 else 0.0
        if vested_fraction < 0.5:
            timing = RiskFactor(
                score=3,
                notes="Less than 50% of your equity is vested, creating significant timing risk for an exit.",
            )
        elif vested_fraction < 0.75:
            timing = RiskFactor(
                score=2, notes="Between 50-75% of your equity is vested, presenting moderate timing risk."
            )
        else:
            timing = RiskFactor(
                score=1, notes="Over 75% of your equity is vested, minimizing timing risk for an exit."
            )

        equity_value = sum(
            (grant.current_fmv * grant.shares_total * params.ipo_multiplier for grant in grants), ZERO
        )
        if params.net_worth > 0:
            ratio = equity_value / params.net_worth
        else:
            ratio = Decimal("Infinity") if equity_value > 0 else ZERO
        if ratio > Decimal("0.8"):
            concentration = RiskFactor(
                score=3,
                notes="Your equity represents over 80% of your net worth, indicating high concentration risk.",
            )
        elif ratio > Decimal("0.5"):
            concentration = RiskFactor(
                score=2,
                notes="Your equity represents over 50% of your net worth, suggesting moderate concentration risk.",
            )
        else:
            concentration = RiskFactor(
                score=1,
                notes="Your equity represents less than 50% of your net worth, indicating lower concentration risk.",
            )

        market_score, market_notes = MARKET_RISK[params.market_conditions]
        market = RiskFactor(score=market_score, notes=market_notes)

        return ExitRiskFactors(
            timing=timing,
            concentration=concentration,
            market_conditions=market,
            overall_score=(timing.score + concentration.score + market.score) / 3,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _shares_at_exit(self, grant: Grant, exit_date: date) -> int:
        if grant.is_double_trigger:
            return self.vesting_engine.evaluate_liquidity_event(grant, exit_date, grant.current_fmv).vested_after_event
        return self.vesting_engine.evaluate_at(grant, exit_date).vested_shares

    def _add_sale(
        self,
        outcome: ExitStrategyOutcome,
        grant: Grant,
        price: Decimal,
        shares: int,
        is_long_term: bool,
        settings: TaxSettings,
    ) -> None:
        if shares <= 0:
            return
        result = self.tax_engine.compute_tax(grant, grant.strike_price, price, shares, is_long_term, settings)
        outcome.shares += shares
        outcome.total_tax += result.totals.total_tax
        outcome.net_proceeds += result.totals.net_proceeds

    @staticmethod
    def _summarize(exit_type: ExitType, strategies: list[ExitStrategyOutcome]) -> ExitTypeAnalysis:
        analysis = ExitTypeAnalysis(exit_type=exit_type, strategies=strategies)
        if not any(strategy.shares > 0 for strategy in strategies):
            return analysis

        # Stable sort: on equal proceeds the first-listed strategy wins
        ranked = sorted(strategies, key=lambda strategy: strategy.net_proceeds, reverse=True)
        analysis.optimal_strategy = ranked[0].name
        analysis.optimal_net_proceeds = ranked[0].net_proceeds
        if len(ranked) > 1:
            analysis.tax_savings = ranked[0].net_proceeds - ranked[1].net_proceeds
        logger.debug("%s: optimal %s (%s)", exit_type.value, analysis.optimal_strategy, analysis.optimal_net_proceeds)
        return analysis

    @staticmethod
    def _recommend(analyses: list[ExitTypeAnalysis]) -> RecommendedExit | None:
        candidates = [analysis for analysis in analyses if analysis.optimal_strategy is not None]
        if not candidates:
            return None
        best = max(candidates, key=lambda analysis: analysis.optimal_net_proceeds)
        return RecommendedExit(
            exit_type=best.exit_type,
            strategy=best.optimal_strategy or "",
            net_proceeds=best.optimal_net_proceeds,
            tax_savings=best.tax_savings,
        )
