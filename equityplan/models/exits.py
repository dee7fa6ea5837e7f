"""Exit strategy analysis models."""

from datetime import date
from decimal import Decimal

from pydantic import Field

from equityplan.models.base import CamelModel
from equityplan.models.enums import ExitType, MarketConditions


class ExitParameters(CamelModel):
    """Assumptions shared by the IPO, acquisition and secondary-sale analyses.

    Exit prices are the grant's current FMV times the multiplier for the exit
    type; secondary sales are further discounted.
    """

    exit_date: date | None = None
    ipo_multiplier: Decimal = Field(default=Decimal("10"), ge=0)
    acquisition_multiplier: Decimal = Field(default=Decimal("8"), ge=0)
    secondary_multiplier: Decimal = Field(default=Decimal("5"), ge=0)
    lockup_days: int = Field(default=180, ge=0)
    cash_fraction: Decimal = Field(default=Decimal("0.7"), ge=0, le=1)
    earnout_fraction: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    secondary_discount: Decimal = Field(default=Decimal("0.2"), ge=0, le=1)
    secondary_sale_fraction: Decimal = Field(default=Decimal("0.25"), ge=0, le=1)
    market_conditions: MarketConditions = MarketConditions.NEUTRAL
    net_worth: Decimal = Field(default=Decimal("500000"), ge=0)


class ExitStrategyOutcome(CamelModel):
    name: str
    shares: int = 0
    total_tax: Decimal = Decimal("0")
    net_proceeds: Decimal = Decimal("0")


class ExitTypeAnalysis(CamelModel):
    exit_type: ExitType
    strategies: list[ExitStrategyOutcome] = []
    optimal_strategy: str | None = None
    optimal_net_proceeds: Decimal = Decimal("0")
    # Net proceeds of the best strategy over the runner-up
    tax_savings: Decimal = Decimal("0")


class LockupComparison(CamelModel):
    """Capital gains tax on the post-exercise gain, held long-term vs sold right after lockup."""

    long_term_tax: Decimal = Decimal("0")
    short_term_tax: Decimal = Decimal("0")
    tax_savings: Decimal = Decimal("0")


class AcquisitionTerms(CamelModel):
    gross_consideration: Decimal = Decimal("0")
    cash_consideration: Decimal = Decimal("0")
    stock_consideration: Decimal = Decimal("0")
    earnout_amount: Decimal = Decimal("0")
    earnout_immediate_tax: Decimal = Decimal("0")
    earnout_deferred_tax: Decimal = Decimal("0")
    earnout_savings: Decimal = Decimal("0")


class SecondaryTerms(CamelModel):
    discount: Decimal = Decimal("0")
    value_loss: Decimal = Decimal("0")


class RiskFactor(CamelModel):
    # 1 (low) to 3 (high)
    score: int
    notes: str


class ExitRiskFactors(CamelModel):
    timing: RiskFactor
    concentration: RiskFactor
    market_conditions: RiskFactor
    overall_score: float


class RecommendedExit(CamelModel):
    exit_type: ExitType
    strategy: str
    net_proceeds: Decimal
    tax_savings: Decimal


class ExitAnalysis(CamelModel):
    ipo: ExitTypeAnalysis
    acquisition: ExitTypeAnalysis
    secondary: ExitTypeAnalysis
    lockup: LockupComparison
    acquisition_terms: AcquisitionTerms
    secondary_terms: SecondaryTerms
    risk_factors: ExitRiskFactors
    recommended: RecommendedExit | None = None
