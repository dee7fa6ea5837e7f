"""Exit scenario comparison."""

import logging
from datetime import date
from decimal import Decimal

from equityplan.engines.tax import EquityTaxEngine
from equityplan.engines.vesting import VestingEngine
from equityplan.models.grant import Grant
from equityplan.models.tax import Scenario, ScenarioComparisonRow, TaxSettings

logger = logging.getLogger(__name__)

# Exit multiples of the current FMV for the canned IPO / acquisition outcomes.
COMMON_SCENARIOS: dict[str, Decimal] = {
    "IPO Conservative": Decimal("10"),
    "IPO Moderate": Decimal("25"),
    "IPO Optimistic": Decimal("50"),
    "Acquisition Conservative": Decimal("5"),
    "Acquisition Moderate": Decimal("15"),
    "Acquisition Optimistic": Decimal("30"),
}


class ScenarioComparator:
    """Runs the tax engine once per exit scenario and tabulates the outcomes."""

    def __init__(
        self,
        tax_engine: EquityTaxEngine | None = None,
        vesting_engine: VestingEngine | None = None,
    ) -> None:
        self.tax_engine = tax_engine or EquityTaxEngine()
        self.vesting_engine = vesting_engine or VestingEngine()

    def compare_scenarios(
        self,
        grant: Grant,
        scenarios: list[Scenario],
        tax_settings: TaxSettings | None = None,
        shares: int | None = None,
        as_of: date | None = None,
    ) -> list[ScenarioComparisonRow]:
        """One row per scenario, in input order.

        The share count is *shares* when given, else the shares vested on
        *as_of* when given, else the whole grant.
        """
        if not scenarios:
            return []

        share_count = self._share_count(grant, shares, as_of)
        return [self._compare_one(grant, scenario, share_count, tax_settings) for scenario in scenarios]

    def _compare_one(
        self,
        grant: Grant,
        scenario: Scenario,
        shares: int,
        tax_settings: TaxSettings | None,
    ) -> ScenarioComparisonRow:
        result = self.tax_engine.compute_tax(
            grant,
            grant.strike_price,
            scenario.exit_price,
            shares,
            scenario.is_long_term,
            tax_settings,
        )
        totals = result.totals
        roi = float(totals.net_proceeds / totals.exercise_cost * 100) if totals.exercise_cost > 0 else 0.0
        return ScenarioComparisonRow(
            name=scenario.name,
            exit_price=scenario.exit_price,
            is_long_term=scenario.is_long_term,
            exercise_cost=totals.exercise_cost,
            gross_proceeds=totals.total_income + totals.exercise_cost,
            net_proceeds=totals.net_proceeds,
            tax_amount=totals.total_tax,
            effective_tax_rate=totals.effective_rate,
            roi=roi,
        )

    def _share_count(self, grant: Grant, shares: int | None, as_of: date | None) -> int:
        if shares is not None:
            return max(int(shares), 0)
        if as_of is not None:
            return self.vesting_engine.evaluate_at(grant, as_of).vested_shares
        return grant.shares_total


def scenarios_from_multipliers(
    grant: Grant,
    multipliers: dict[str, Decimal] | None = None,
    is_long_term: bool = True,
) -> list[Scenario]:
    """Scenarios priced at the grant's current FMV times each multiplier."""
    multipliers = COMMON_SCENARIOS if multipliers is None else multipliers
    return [
        Scenario(name=name, exit_price=grant.current_fmv * Decimal(str(multiple)), is_long_term=is_long_term)
        for name, multiple in multipliers.items()
    ]
