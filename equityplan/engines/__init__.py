"""Vesting, tax and decision engines."""

from equityplan.engines.advisor import ExerciseAdvisor
from equityplan.engines.aggregator import PortfolioAggregator
from equityplan.engines.amt import AMTEngine
from equityplan.engines.exits import ExitStrategyAnalyzer
from equityplan.engines.scenarios import ScenarioComparator
from equityplan.engines.tax import EquityTaxEngine
from equityplan.engines.vesting import VestingEngine

__all__ = [
    "AMTEngine",
    "EquityTaxEngine",
    "ExerciseAdvisor",
    "ExitStrategyAnalyzer",
    "PortfolioAggregator",
    "ScenarioComparator",
    "VestingEngine",
]
