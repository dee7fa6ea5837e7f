"""Tests for exit scenario comparison."""

import random
from datetime import date
from decimal import Decimal

import pytest

from equityplan.engines.scenarios import COMMON_SCENARIOS, ScenarioComparator, scenarios_from_multipliers
from equityplan.models.tax import Scenario


@pytest.fixture
def comparator():
    return ScenarioComparator()


class TestCompareScenarios:
    def test_rows_follow_input_order(self, comparator, nso_grant, flat_settings):
        scenarios = [
            Scenario(name="High", exit_price=Decimal("15"), is_long_term=True),
            Scenario(name="Flat", exit_price=Decimal("8"), is_long_term=True),
        ]
        rows = comparator.compare_scenarios(nso_grant, scenarios, flat_settings)

        assert [row.name for row in rows] == ["High", "Flat"]
        high = rows[0]
        assert high.exercise_cost == Decimal("10000")
        assert high.gross_proceeds == Decimal("75000")
        assert high.tax_amount == Decimal("22250")
        assert high.net_proceeds == Decimal("42750")
        assert high.roi == pytest.approx(427.5)
        assert high.effective_tax_rate == pytest.approx(22250 / 65000)

    def test_shuffled_input_only_reorders_rows(self, comparator, nso_grant, bracket_settings):
        scenarios = scenarios_from_multipliers(nso_grant) + [
            Scenario(name="Short sale", exit_price=Decimal("20"), is_long_term=False),
            Scenario(name="Underwater", exit_price=Decimal("1"), is_long_term=True),
        ]
        shuffled = list(scenarios)
        random.Random(42).shuffle(shuffled)

        baseline = {row.name: row for row in comparator.compare_scenarios(nso_grant, scenarios, bracket_settings)}
        rows = comparator.compare_scenarios(nso_grant, shuffled, bracket_settings)

        assert [row.name for row in rows] == [scenario.name for scenario in shuffled]
        for row in rows:
            assert row == baseline[row.name]

    def test_empty_scenarios(self, comparator, nso_grant):
        assert comparator.compare_scenarios(nso_grant, []) == []

    def test_rsu_roi_is_zero(self, comparator, rsu_grant, flat_settings):
        rows = comparator.compare_scenarios(
            rsu_grant, [Scenario(name="Exit", exit_price=Decimal("60"))], flat_settings, shares=10
        )
        assert rows[0].exercise_cost == 0
        assert rows[0].roi == 0.0

    def test_share_count_from_vesting(self, comparator, iso_grant, flat_settings):
        rows = comparator.compare_scenarios(
            iso_grant,
            [Scenario(name="Exit", exit_price=Decimal("3"), is_long_term=True)],
            flat_settings,
            as_of=date(2024, 1, 1),
        )
        assert rows[0].exercise_cost == Decimal("2500")

    def test_explicit_shares_win(self, comparator, iso_grant, flat_settings):
        rows = comparator.compare_scenarios(
            iso_grant,
            [Scenario(name="Exit", exit_price=Decimal("3"))],
            flat_settings,
            shares=100,
            as_of=date(2024, 1, 1),
        )
        assert rows[0].exercise_cost == Decimal("100")

    def test_whole_grant_by_default(self, comparator, nso_grant, flat_settings):
        rows = comparator.compare_scenarios(nso_grant, [Scenario(name="Exit", exit_price=Decimal("8"))], flat_settings)
        assert rows[0].exercise_cost == Decimal("10000")


class TestScenariosFromMultipliers:
    def test_common_scenarios(self, nso_grant):
        scenarios = scenarios_from_multipliers(nso_grant)
        assert [s.name for s in scenarios] == list(COMMON_SCENARIOS)
        assert scenarios[0].exit_price == Decimal("80")
        assert all(s.is_long_term for s in scenarios)

    def test_custom_multipliers(self, nso_grant):
        scenarios = scenarios_from_multipliers(nso_grant, {"Double": Decimal("2")}, is_long_term=False)
        assert len(scenarios) == 1
        assert scenarios[0].exit_price == Decimal("16")
        assert scenarios[0].is_long_term is False
