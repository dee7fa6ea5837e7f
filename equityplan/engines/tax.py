"""Equity tax computation engine.

Turns a grant, an exercise price, an exit price and a share count into a full
tax and proceeds breakdown:
  - Progressive federal ordinary income tax, stacked on the user's other income
  - Short/long-term capital gains, long-term gains via the LTCG stacking worksheet
  - AMT on the ISO exercise spread (qualifying dispositions only)
  - Flat state tax, optionally prorated across several jurisdictions
"""

import logging
from decimal import Decimal

from equityplan.engines.amt import AMTEngine
from equityplan.engines.brackets import (
    FEDERAL_BRACKETS,
    FEDERAL_LTCG_BRACKETS,
    FLAT_LTCG_THRESHOLDS,
    latest_table,
)
from equityplan.models.enums import GrantType, TaxModel
from equityplan.models.grant import Grant
from equityplan.models.tax import (
    AMTResult,
    FederalTax,
    StateAllocation,
    StateTax,
    TaxResult,
    TaxSettings,
    TaxTotals,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class EquityTaxEngine:
    """Computes federal, AMT and state tax for one hypothetical exit."""

    def __init__(self, amt_engine: AMTEngine | None = None) -> None:
        self.amt_engine = amt_engine or AMTEngine()

    def compute_tax(
        self,
        grant: Grant,
        exercise_price: Decimal | None,
        exit_price: Decimal,
        shares: int,
        is_long_term: bool,
        tax_settings: TaxSettings | None = None,
    ) -> TaxResult:
        """Compute the tax result for exercising (or vesting) and selling *shares*.

        Args:
            grant: Normalized grant.
            exercise_price: Per-share price paid at exercise. None means the
                grant's strike price. Ignored for RSUs.
            exit_price: Per-share sale price.
            shares: Shares exercised and sold.
            is_long_term: Holding-period classification of the sale. For ISOs
                this also selects qualifying (True) vs disqualifying (False).
            tax_settings: User tax assumptions; defaults when omitted.
        """
        settings = tax_settings or TaxSettings()
        shares = max(int(shares), 0)
        exit_price = max(exit_price, ZERO)
        fmv = max(grant.current_fmv, ZERO)
        if grant.grant_type == GrantType.RSU:
            exercise_price = ZERO
        elif exercise_price is None:
            exercise_price = grant.strike_price
        exercise_price = max(exercise_price, ZERO)

        exercise_cost = exercise_price * shares
        gross_proceeds = exit_price * shares
        total_income = gross_proceeds - exercise_cost

        if grant.grant_type == GrantType.ISO:
            federal, amt = self._iso_federal(
                fmv, exercise_price, exit_price, shares, total_income, is_long_term, settings
            )
        elif grant.grant_type == GrantType.NSO:
            federal, amt = self._nso_federal(fmv, exercise_price, exit_price, shares, is_long_term, settings), None
        else:
            federal, amt = self._rsu_federal(fmv, exit_price, shares, is_long_term, settings), None

        state = self.compute_state_tax(total_income, settings)

        total_tax = federal.federal_tax + state.state_tax + (amt.net_amt_due if amt else ZERO)
        effective_rate = float(total_tax / total_income) if total_income > 0 else 0.0

        return TaxResult(
            federal=federal,
            amt=amt,
            state=state,
            totals=TaxTotals(
                exercise_cost=exercise_cost,
                gross_proceeds=gross_proceeds,
                total_income=total_income,
                total_tax=total_tax,
                effective_rate=effective_rate,
                net_proceeds=total_income - total_tax,
            ),
            assumptions=settings,
        )

    # ------------------------------------------------------------------
    # Per-grant-type federal treatment
    # ------------------------------------------------------------------

    def _iso_federal(
        self,
        fmv: Decimal,
        exercise_price: Decimal,
        exit_price: Decimal,
        shares: int,
        total_income: Decimal,
        is_long_term: bool,
        settings: TaxSettings,
    ) -> tuple[FederalTax, AMTResult | None]:
        spread = max((fmv - exercise_price) * shares, ZERO)

        if is_long_term:
            # Qualifying disposition: whole gain is long-term, AMT on the spread in parallel
            long_term = max(total_income, ZERO)
            capital_gains_tax = self.compute_capital_gains_tax(long_term, settings.income, True, settings)
            amt = None
            if spread > 0:
                regular_tax = self.compute_ordinary_income_tax(settings.income, ZERO, settings)
                amt = self.amt_engine.compute_amt(spread, settings, regular_tax=regular_tax)
            federal = FederalTax(
                long_term_gains=long_term,
                capital_gains_tax=capital_gains_tax,
                federal_tax=capital_gains_tax,
            )
            return federal, amt

        # Disqualifying disposition: spread is ordinary income, no AMT
        ordinary_tax = self.compute_ordinary_income_tax(spread, settings.income, settings)
        remaining_gain = total_income - spread
        short_term, long_term, capital_gains_tax = self._classify_gain(
            remaining_gain, settings.income + spread, is_long_term, settings
        )
        federal = FederalTax(
            ordinary_income=spread,
            short_term_gains=short_term,
            long_term_gains=long_term,
            ordinary_tax=ordinary_tax,
            capital_gains_tax=capital_gains_tax,
            federal_tax=ordinary_tax + capital_gains_tax,
        )
        return federal, None

    def _nso_federal(
        self,
        fmv: Decimal,
        exercise_price: Decimal,
        exit_price: Decimal,
        shares: int,
        is_long_term: bool,
        settings: TaxSettings,
    ) -> FederalTax:
        spread = max((fmv - exercise_price) * shares, ZERO)
        ordinary_tax = self.compute_ordinary_income_tax(spread, settings.income, settings)
        post_exercise_gain = exit_price * shares - fmv * shares
        short_term, long_term, capital_gains_tax = self._classify_gain(
            post_exercise_gain, settings.income + spread, is_long_term, settings
        )
        return FederalTax(
            ordinary_income=spread,
            short_term_gains=short_term,
            long_term_gains=long_term,
            ordinary_tax=ordinary_tax,
            capital_gains_tax=capital_gains_tax,
            federal_tax=ordinary_tax + capital_gains_tax,
        )

    def _rsu_federal(
        self,
        fmv: Decimal,
        exit_price: Decimal,
        shares: int,
        is_long_term: bool,
        settings: TaxSettings,
    ) -> FederalTax:
        vest_value = fmv * shares
        ordinary_tax = self.compute_ordinary_income_tax(vest_value, settings.income, settings)
        post_vest_gain = exit_price * shares - vest_value
        short_term, long_term, capital_gains_tax = self._classify_gain(
            post_vest_gain, settings.income + vest_value, is_long_term, settings
        )
        return FederalTax(
            ordinary_income=vest_value,
            short_term_gains=short_term,
            long_term_gains=long_term,
            ordinary_tax=ordinary_tax,
            capital_gains_tax=capital_gains_tax,
            federal_tax=ordinary_tax + capital_gains_tax,
        )

    def _classify_gain(
        self,
        gain: Decimal,
        base_income: Decimal,
        is_long_term: bool,
        settings: TaxSettings,
    ) -> tuple[Decimal, Decimal, Decimal]:
        """Split a gain into (short_term, long_term, tax). Losses are not taxed."""
        if gain <= 0:
            return ZERO, ZERO, ZERO
        tax = self.compute_capital_gains_tax(gain, base_income, is_long_term, settings)
        if is_long_term:
            return ZERO, gain, tax
        return gain, ZERO, tax

    # ------------------------------------------------------------------
    # Tax computation methods
    # ------------------------------------------------------------------

    def compute_ordinary_income_tax(
        self, amount: Decimal, base_income: Decimal, settings: TaxSettings
    ) -> Decimal:
        """Tax on *amount* of ordinary income stacked on top of *base_income*.

        Bracketed model: T(base + amount) - T(base) over the federal brackets.
        Flat model: amount x federal_rate.
        """
        if amount <= 0:
            return ZERO
        base_income = max(base_income, ZERO)

        if settings.tax_model == TaxModel.FLAT:
            return amount * settings.federal_rate

        brackets = latest_table(FEDERAL_BRACKETS, settings.tax_year, settings.filing_status)
        if not brackets:
            logger.warning("No federal brackets for %s, using flat rate", settings.filing_status.value)
            return amount * settings.federal_rate
        return self._apply_brackets(base_income + amount, brackets) - self._apply_brackets(
            base_income, brackets
        )

    def compute_capital_gains_tax(
        self,
        amount: Decimal,
        base_income: Decimal,
        is_long_term: bool,
        settings: TaxSettings,
    ) -> Decimal:
        """Tax on a capital gain stacked on top of *base_income*.

        Short-term gains are ordinary income. Long-term gains use the LTCG
        stacking worksheet (bracketed) or a single threshold rate (flat).
        """
        if amount <= 0:
            return ZERO
        base_income = max(base_income, ZERO)

        if not is_long_term:
            return self.compute_ordinary_income_tax(amount, base_income, settings)

        if settings.tax_model == TaxModel.FLAT:
            return amount * self._threshold_rate(base_income + amount, FLAT_LTCG_THRESHOLDS)

        return self.compute_ltcg_tax(amount, base_income + amount, settings)

    def compute_ltcg_tax(
        self,
        long_term_gains: Decimal,
        taxable_income: Decimal,
        settings: TaxSettings,
    ) -> Decimal:
        """Compute federal tax on long-term gains.

        Uses the stacking method from the Qualified Dividends and Capital Gain
        Tax Worksheet: the gain sits on top of ordinary income and each slice
        is taxed at the LTCG rate of the bracket it falls in.
        """
        if long_term_gains <= 0:
            return ZERO

        brackets = latest_table(FEDERAL_LTCG_BRACKETS, settings.tax_year, settings.filing_status)
        if not brackets:
            return long_term_gains * Decimal("0.15")

        # Ordinary income fills the bottom of the brackets first
        ordinary_income_top = max(taxable_income - long_term_gains, ZERO)

        tax = ZERO
        remaining = long_term_gains
        prev_bound = ZERO

        for upper_bound, rate in brackets:
            if remaining <= 0:
                break

            if upper_bound is None:
                tax += remaining * rate
                remaining = ZERO
            else:
                bracket_start = max(prev_bound, ordinary_income_top)
                if bracket_start >= upper_bound:
                    prev_bound = upper_bound
                    continue
                taxed_here = min(remaining, upper_bound - bracket_start)
                tax += taxed_here * rate
                remaining -= taxed_here
                prev_bound = upper_bound

        return tax

    def compute_state_tax(self, total_income: Decimal, settings: TaxSettings) -> StateTax:
        """Flat state tax on the total income, prorated across jurisdictions."""
        taxable = max(total_income, ZERO)
        allocations = self._normalized_allocations(settings)

        breakdown: list[StateAllocation] = []
        for state_code, fraction in allocations:
            rate = settings.state_rates.get(state_code, settings.state_rate)
            allocated_income = taxable * fraction
            breakdown.append(
                StateAllocation(
                    state_code=state_code,
                    allocation=fraction,
                    allocated_income=allocated_income,
                    state_rate=rate,
                    state_tax=allocated_income * rate,
                )
            )

        return StateTax(
            state_tax=sum((entry.state_tax for entry in breakdown), ZERO),
            state_breakdown=breakdown,
        )

    @staticmethod
    def _normalized_allocations(settings: TaxSettings) -> list[tuple[str, Decimal]]:
        """State allocation fractions that sum to exactly 1."""
        residence = settings.state_of_residence or "CA"
        positive = [
            (code, fraction)
            for code, fraction in settings.state_allocations.items()
            if fraction > 0
        ]
        total = sum((fraction for _, fraction in positive), ZERO)
        if total <= 0:
            return [(residence, Decimal("1"))]

        if total != 1:
            logger.warning("State allocations sum to %s, renormalizing to 1", total)
        normalized = [(code, fraction / total) for code, fraction in positive]
        # Last entry absorbs rounding so the fractions sum to exactly 1
        head = sum((fraction for _, fraction in normalized[:-1]), ZERO)
        normalized[-1] = (normalized[-1][0], Decimal("1") - head)
        return normalized

    @staticmethod
    def _threshold_rate(income: Decimal, thresholds: list[tuple[Decimal | None, Decimal]]) -> Decimal:
        for upper_bound, rate in thresholds:
            if upper_bound is None or income <= upper_bound:
                return rate
        return thresholds[-1][1]

    @staticmethod
    def _apply_brackets(
        income: Decimal, brackets: list[tuple[Decimal | None, Decimal]]
    ) -> Decimal:
        """Apply progressive tax brackets to income."""
        tax = ZERO
        prev_bound = ZERO

        for upper_bound, rate in brackets:
            if upper_bound is None:
                taxable_in_bracket = max(income - prev_bound, ZERO)
            else:
                taxable_in_bracket = max(min(income, upper_bound) - prev_bound, ZERO)
            tax += taxable_in_bracket * rate
            if upper_bound is None or income <= upper_bound:
                break
            prev_bound = upper_bound

        return tax
