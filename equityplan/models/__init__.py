"""Data models for the equity planning engine."""

from equityplan.models.decisions import (
    AdviceInsight,
    CompanyProfile,
    DecisionFactors,
    DecisionInputs,
    EarlyExerciseAnalysis,
    ExerciseStrategy,
    FinancialProfile,
    ISOLimitCheck,
    OptimalExercise,
    Recommendation,
    RecommendationDetail,
    SpecialSituation,
    TaxImplications,
)
from equityplan.models.enums import (
    CompanyStage,
    Confidence,
    EarlyExerciseAdvice,
    ExerciseAction,
    ExitType,
    FactorImpact,
    FilingStatus,
    GrantType,
    InsightPriority,
    MarketConditions,
    RiskTolerance,
    TaxModel,
    VestingCadence,
    VestingEventLabel,
)
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
from equityplan.models.tax import (
    AMTResult,
    FederalTax,
    Scenario,
    ScenarioComparisonRow,
    StateAllocation,
    StateTax,
    TaxResult,
    TaxSettings,
    TaxTotals,
)
from equityplan.models.vesting import (
    DetailedVestingResult,
    GrantContribution,
    LiquidityEventResult,
    MonthBucket,
    PortfolioSummary,
    UpcomingVest,
    ValueShare,
    VestingEvent,
)

__all__ = [
    "AMTResult",
    "AcquisitionTerms",
    "AdviceInsight",
    "CompanyProfile",
    "CompanyStage",
    "Confidence",
    "DecisionFactors",
    "DecisionInputs",
    "DetailedVestingResult",
    "EarlyExerciseAdvice",
    "EarlyExerciseAnalysis",
    "ExerciseAction",
    "ExerciseStrategy",
    "ExitAnalysis",
    "ExitParameters",
    "ExitRiskFactors",
    "ExitStrategyOutcome",
    "ExitType",
    "ExitTypeAnalysis",
    "FactorImpact",
    "FederalTax",
    "FilingStatus",
    "FinancialProfile",
    "Grant",
    "GrantContribution",
    "GrantType",
    "ISOLimitCheck",
    "InsightPriority",
    "LiquidityEventResult",
    "LockupComparison",
    "MarketConditions",
    "MonthBucket",
    "OptimalExercise",
    "PortfolioSummary",
    "Recommendation",
    "RecommendationDetail",
    "RecommendedExit",
    "RiskFactor",
    "RiskTolerance",
    "Scenario",
    "ScenarioComparisonRow",
    "SecondaryTerms",
    "SpecialSituation",
    "StateAllocation",
    "StateTax",
    "TaxImplications",
    "TaxModel",
    "TaxResult",
    "TaxSettings",
    "TaxTotals",
    "UpcomingVest",
    "ValueShare",
    "VestingCadence",
    "VestingEvent",
    "VestingEventLabel",
]
