"""Exercise decision models."""

from decimal import Decimal

from pydantic import Field, field_validator

from equityplan.models.base import CamelModel
from equityplan.models.enums import (
    CompanyStage,
    Confidence,
    EarlyExerciseAdvice,
    ExerciseAction,
    FactorImpact,
    GrantType,
    InsightPriority,
    RiskTolerance,
)
from equityplan.models.tax import ScenarioComparisonRow

FACTOR_WEIGHTS: dict[str, float] = {
    "financial_capacity": 0.3,
    "company_outlook": 0.3,
    "tax_efficiency": 0.2,
    "timing": 0.2,
}


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class DecisionFactors(CamelModel):
    """Four normalized [0, 1] scores feeding the recommendation."""

    financial_capacity: float = 0.0
    company_outlook: float = 0.0
    tax_efficiency: float = 0.0
    timing: float = 0.0

    @field_validator("financial_capacity", "company_outlook", "tax_efficiency", "timing", mode="before")
    @classmethod
    def _clamp(cls, value: object) -> float:
        try:
            return _clamp_unit(float(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.0

    @property
    def overall_score(self) -> float:
        return (
            self.financial_capacity * FACTOR_WEIGHTS["financial_capacity"]
            + self.company_outlook * FACTOR_WEIGHTS["company_outlook"]
            + self.tax_efficiency * FACTOR_WEIGHTS["tax_efficiency"]
            + self.timing * FACTOR_WEIGHTS["timing"]
        )


class DecisionInputs(CamelModel):
    strike_price: Decimal = Decimal("0")
    vested_shares: int = 0
    available_cash: Decimal = Decimal("0")
    current_income: Decimal = Decimal("0")
    company_stage: CompanyStage = CompanyStage.UNKNOWN
    growth_rate: float = 0.0
    option_type: GrantType = GrantType.ISO
    state_of_residence: str = "CA"
    time_to_expiration: float = 10.0


class RecommendationDetail(CamelModel):
    factor: str
    impact: FactorImpact
    message: str


class Recommendation(CamelModel):
    action: ExerciseAction
    confidence: Confidence
    overall_score: float
    reasons: list[str] = []
    details: list[RecommendationDetail] = []


class FinancialProfile(CamelModel):
    available_cash: Decimal = Field(default=Decimal("0"), ge=0)
    income: Decimal = Field(default=Decimal("0"), ge=0)
    risk_tolerance: RiskTolerance = RiskTolerance.MEDIUM
    other_investments: Decimal = Field(default=Decimal("0"), ge=0)
    debt: Decimal = Field(default=Decimal("0"), ge=0)
    # 0 means unknown; advice then assumes $5,000 a month
    monthly_expenses: Decimal = Field(default=Decimal("0"), ge=0)
    retirement_savings: Decimal = Field(default=Decimal("0"), ge=0)
    age: int = Field(default=35, ge=0)


class CompanyProfile(CamelModel):
    stage: CompanyStage = CompanyStage.UNKNOWN
    growth_rate: float = 0.0


class OptimalExercise(CamelModel):
    vested_shares: int
    max_shares_based_on_cash: int
    recommended_shares: int
    exercise_cost_only: Decimal
    estimated_tax_impact: Decimal
    total_estimated_cost: Decimal


class ISOLimitCheck(CamelModel):
    iso_limit: Decimal
    potential_iso_value: Decimal
    is_limit_exceeded: bool
    iso_shares: int
    nso_shares: int


class SpecialSituation(CamelModel):
    type: str
    description: str
    impact: str


class TaxImplications(CamelModel):
    exercise_tax: Decimal
    amt_impact: Decimal
    effective_tax_rate: float


class EarlyExerciseAnalysis(CamelModel):
    """Exercising unvested options now (with an 83(b) election) versus at vest."""

    applicable: bool = False
    recommendation: EarlyExerciseAdvice = EarlyExerciseAdvice.NOT_APPLICABLE
    unvested_shares: int = 0
    exercise_cost: Decimal = Decimal("0")
    projected_fmv_at_vest: Decimal = Decimal("0")
    tax_now: Decimal = Decimal("0")
    tax_at_vest: Decimal = Decimal("0")
    tax_savings: Decimal = Decimal("0")


class AdviceInsight(CamelModel):
    type: str
    title: str
    content: str
    priority: InsightPriority


class ExerciseStrategy(CamelModel):
    recommendation: Recommendation
    optimal_exercise: OptimalExercise
    tax_implications: TaxImplications
    decision_factors: DecisionFactors
    special_situations: list[SpecialSituation] = []
    scenario_comparison: list[ScenarioComparisonRow] = []
    early_exercise: EarlyExerciseAnalysis | None = None
    insights: list[AdviceInsight] = []
