"""Exercise decision heuristics.

A rule-based classifier: four normalized factor scores are combined into a
weighted score that picks a base action, then a fixed sequence of override
rules downgrades it when specific risks are present. Rules run in the order
written and every threshold is fixed, so identical inputs always produce the
identical recommendation.
"""

import logging
import math
from datetime import date
from decimal import Decimal

from equityplan.engines.brackets import ISO_ANNUAL_LIMIT
from equityplan.engines.dates import years_between
from equityplan.engines.scenarios import ScenarioComparator
from equityplan.engines.tax import EquityTaxEngine
from equityplan.engines.vesting import VestingEngine
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
    FactorImpact,
    GrantType,
    InsightPriority,
    RiskTolerance,
)
from equityplan.models.grant import Grant
from equityplan.models.tax import Scenario, TaxResult, TaxSettings

logger = logging.getLogger(__name__)

EXERCISE_THRESHOLD = 0.7
PARTIAL_EXERCISE_THRESHOLD = 0.5
AMT_WARNING_THRESHOLD = Decimal("10000")

STAGE_OUTLOOK: dict[CompanyStage, float] = {
    CompanyStage.EARLY: 0.4,
    CompanyStage.GROWTH: 0.6,
    CompanyStage.LATE: 0.8,
    CompanyStage.PRE_IPO: 0.9,
}
HIGH_TAX_STATES = frozenset({"California", "New York", "New Jersey", "CA", "NY", "NJ"})

RISK_EXERCISE_FRACTION: dict[RiskTolerance, Decimal] = {
    RiskTolerance.LOW: Decimal("0.3"),
    RiskTolerance.MEDIUM: Decimal("0.5"),
    RiskTolerance.HIGH: Decimal("0.8"),
}
CASH_SAFETY_MARGIN = Decimal("0.9")
DEFAULT_YEARS_TO_EXPIRATION = 10.0

# Growth assumed between an early exercise and the shares vesting
EARLY_EXERCISE_GROWTH = Decimal("3")

# Personalized advice thresholds
CONCENTRATION_THRESHOLD = Decimal("0.3")
HIGH_CONCENTRATION_THRESHOLD = Decimal("0.5")
DEFAULT_MONTHLY_EXPENSES = Decimal("5000")
MIN_RUNWAY_MONTHS = 6
AMT_INCOME_SHARE = Decimal("0.1")
RETIREMENT_PROCEEDS_THRESHOLD = Decimal("50000")
HIGH_DEBT_THRESHOLD = Decimal("10000")
INSIGHT_ORDER: dict[InsightPriority, int] = {
    InsightPriority.HIGH: 1,
    InsightPriority.MEDIUM: 2,
    InsightPriority.LOW: 3,
}

REASONS: dict[ExerciseAction, list[str]] = {
    ExerciseAction.EXERCISE: [
        "Strong company outlook with significant upside potential",
        "Your financial capacity can support the exercise cost",
        "Tax implications appear manageable given the potential upside",
    ],
    ExerciseAction.PARTIAL_EXERCISE: [
        "Exercising a portion balances risk with potential upside",
        "Reduces immediate financial and tax impact",
        "Allows you to benefit from potential growth while managing exposure",
    ],
    ExerciseAction.WAIT: [
        "Current financial or tax implications may be substantial",
        "Company outlook has uncertainty that may resolve over time",
        "Waiting allows for more information before committing capital",
    ],
}


def format_currency(amount: Decimal) -> str:
    """Whole-dollar US currency, e.g. ``$12,346``."""
    return f"${amount:,.0f}"


class ExerciseAdvisor:
    """Turns affordability, tax outcome and company outlook into an exercise recommendation."""

    def __init__(
        self,
        tax_engine: EquityTaxEngine | None = None,
        vesting_engine: VestingEngine | None = None,
        scenario_comparator: ScenarioComparator | None = None,
    ) -> None:
        self.tax_engine = tax_engine or EquityTaxEngine()
        self.vesting_engine = vesting_engine or VestingEngine()
        self.scenario_comparator = scenario_comparator or ScenarioComparator(
            self.tax_engine, self.vesting_engine
        )

    def recommend(self, decision_factors: DecisionFactors, tax_result: TaxResult, grant: Grant) -> Recommendation:
        factors = decision_factors
        score = factors.overall_score
        details: list[RecommendationDetail] = []

        if score >= EXERCISE_THRESHOLD:
            action, confidence = ExerciseAction.EXERCISE, Confidence.HIGH
        elif score >= PARTIAL_EXERCISE_THRESHOLD:
            action, confidence = ExerciseAction.PARTIAL_EXERCISE, Confidence.MEDIUM
        else:
            action, confidence = ExerciseAction.WAIT, Confidence.MEDIUM

        if factors.financial_capacity < 0.4:
            details.append(
                RecommendationDetail(
                    factor="financial_capacity",
                    impact=FactorImpact.NEGATIVE,
                    message="Your financial capacity is limited relative to the exercise cost.",
                )
            )
            if action == ExerciseAction.EXERCISE:
                action = ExerciseAction.PARTIAL_EXERCISE

        if factors.tax_efficiency < 0.4:
            if grant.grant_type == GrantType.ISO:
                message = (
                    "The AMT impact of exercising may be significant. "
                    "Consider exercising in multiple tax years."
                )
            else:
                message = "The immediate tax impact will be substantial."
            details.append(
                RecommendationDetail(factor="tax_efficiency", impact=FactorImpact.NEGATIVE, message=message)
            )

        if factors.company_outlook > 0.7:
            details.append(
                RecommendationDetail(
                    factor="company_outlook",
                    impact=FactorImpact.POSITIVE,
                    message=(
                        "The company's growth trajectory appears strong, "
                        "suggesting potential for significant upside."
                    ),
                )
            )
        elif factors.company_outlook < 0.4:
            details.append(
                RecommendationDetail(
                    factor="company_outlook",
                    impact=FactorImpact.NEGATIVE,
                    message=(
                        "The company's outlook has uncertainty. "
                        "Consider waiting for more positive signals."
                    ),
                )
            )
            if action == ExerciseAction.EXERCISE:
                action, confidence = ExerciseAction.PARTIAL_EXERCISE, Confidence.MEDIUM

        if factors.timing > 0.7:
            details.append(
                RecommendationDetail(
                    factor="timing",
                    impact=FactorImpact.POSITIVE,
                    message="Current timing appears favorable for exercise.",
                )
            )
        elif factors.timing < 0.3:
            details.append(
                RecommendationDetail(
                    factor="timing",
                    impact=FactorImpact.NEGATIVE,
                    message="Timing factors suggest waiting may be prudent.",
                )
            )

        if tax_result.amt is not None and tax_result.amt.net_amt_due > AMT_WARNING_THRESHOLD:
            details.append(
                RecommendationDetail(
                    factor="amt_impact",
                    impact=FactorImpact.NEGATIVE,
                    message=f"The AMT impact is substantial at {format_currency(tax_result.amt.net_amt_due)}.",
                )
            )
            if action == ExerciseAction.EXERCISE:
                action = ExerciseAction.PARTIAL_EXERCISE

        logger.debug("Recommendation score=%.3f action=%s details=%d", score, action.value, len(details))
        return Recommendation(
            action=action,
            confidence=confidence,
            overall_score=score,
            reasons=list(REASONS[action]),
            details=details,
        )

    # ------------------------------------------------------------------
    # Inputs to the recommendation
    # ------------------------------------------------------------------

    def compute_decision_factors(self, inputs: DecisionInputs) -> DecisionFactors:
        """Score affordability, outlook, tax efficiency and timing on [0, 1]."""
        exercise_cost = inputs.strike_price * inputs.vested_shares
        if exercise_cost > 0:
            financial_capacity = min(1.0, float(inputs.available_cash / (exercise_cost * Decimal("1.5"))))
        else:
            financial_capacity = 1.0

        outlook = STAGE_OUTLOOK.get(inputs.company_stage, 0.5)
        outlook += min(0.5, inputs.growth_rate / 200)

        tax_score = 0.5
        if inputs.option_type == GrantType.ISO:
            tax_score += 0.2
        elif inputs.option_type == GrantType.NSO:
            tax_score -= 0.1
        if inputs.state_of_residence in HIGH_TAX_STATES:
            tax_score -= 0.1
        if inputs.current_income > 400000:
            tax_score -= 0.1
        elif inputs.current_income < 150000:
            tax_score += 0.1

        timing = 0.5
        if inputs.time_to_expiration < 1:
            timing += 0.4
        elif inputs.time_to_expiration < 3:
            timing += 0.2
        elif inputs.time_to_expiration > 8:
            timing -= 0.2

        # DecisionFactors clamps each score into [0, 1]
        return DecisionFactors(
            financial_capacity=financial_capacity,
            company_outlook=outlook,
            tax_efficiency=tax_score,
            timing=timing,
        )

    def optimal_exercise_amount(
        self,
        grant: Grant,
        vested_shares: int,
        profile: FinancialProfile,
        tax_settings: TaxSettings | None = None,
    ) -> OptimalExercise:
        """How many vested shares to exercise given cash on hand and risk tolerance.

        The per-share tax is taken from exercising and immediately selling one
        share at the current FMV.
        """
        vested_shares = max(vested_shares, 0)
        settings = (tax_settings or TaxSettings()).model_copy(update={"income": profile.income})
        single_share_tax = self.tax_engine.compute_tax(
            grant, grant.strike_price, grant.current_fmv, 1, False, settings
        ).totals.total_tax

        cost_per_share = grant.strike_price + single_share_tax
        safe_cash = profile.available_cash * CASH_SAFETY_MARGIN
        if cost_per_share > 0:
            max_shares_based_on_cash = math.floor(safe_cash / cost_per_share)
        else:
            max_shares_based_on_cash = vested_shares

        fraction = RISK_EXERCISE_FRACTION[profile.risk_tolerance]
        recommended = min(math.floor(vested_shares * fraction), max_shares_based_on_cash)

        return OptimalExercise(
            vested_shares=vested_shares,
            max_shares_based_on_cash=max_shares_based_on_cash,
            recommended_shares=recommended,
            exercise_cost_only=grant.strike_price * recommended,
            estimated_tax_impact=single_share_tax * recommended,
            total_estimated_cost=cost_per_share * recommended,
        )

    def iso_limit_check(self, grant: Grant, vested_shares: int) -> ISOLimitCheck:
        """Apply the $100,000 ISO rule, treating all vested shares as first exercisable this year."""
        vested_shares = max(vested_shares, 0)
        fmv_at_grant = grant.grant_date_fmv or grant.strike_price
        potential_iso_value = fmv_at_grant * vested_shares
        exceeded = potential_iso_value > ISO_ANNUAL_LIMIT

        iso_shares, nso_shares = vested_shares, 0
        if exceeded:
            iso_shares = math.floor(ISO_ANNUAL_LIMIT / fmv_at_grant)
            nso_shares = vested_shares - iso_shares

        return ISOLimitCheck(
            iso_limit=ISO_ANNUAL_LIMIT,
            potential_iso_value=potential_iso_value,
            is_limit_exceeded=exceeded,
            iso_shares=iso_shares,
            nso_shares=nso_shares,
        )

    def analyze_early_exercise(
        self,
        grant: Grant,
        profile: FinancialProfile,
        tax_settings: TaxSettings | None = None,
        as_of: date | None = None,
    ) -> EarlyExerciseAnalysis:
        """Compare exercising the unvested options now against exercising them at vest.

        With an 83(b) election the spread is taxed at today's FMV; waiting taxes
        the spread at the projected FMV when the shares vest. ISO spreads are
        measured by the AMT they trigger, NSO spreads as ordinary income.
        """
        if not grant.is_option or not grant.allows_early_exercise:
            return EarlyExerciseAnalysis()

        as_of = as_of or date.today()
        settings = tax_settings or TaxSettings()
        unvested = self.vesting_engine.evaluate_at(grant, as_of).unvested_shares
        if unvested <= 0:
            return EarlyExerciseAnalysis()

        projected_fmv = grant.current_fmv * EARLY_EXERCISE_GROWTH
        spread_now = max(grant.current_fmv - grant.strike_price, Decimal("0")) * unvested
        spread_at_vest = max(projected_fmv - grant.strike_price, Decimal("0")) * unvested
        tax_now = self._spread_tax(grant, spread_now, settings)
        tax_at_vest = self._spread_tax(grant, spread_at_vest, settings)
        tax_savings = tax_at_vest - tax_now
        exercise_cost = grant.strike_price * unvested

        if tax_savings > 0 and exercise_cost + tax_now <= profile.available_cash:
            advice = EarlyExerciseAdvice.EARLY_EXERCISE
        else:
            advice = EarlyExerciseAdvice.WAIT

        return EarlyExerciseAnalysis(
            applicable=True,
            recommendation=advice,
            unvested_shares=unvested,
            exercise_cost=exercise_cost,
            projected_fmv_at_vest=projected_fmv,
            tax_now=tax_now,
            tax_at_vest=tax_at_vest,
            tax_savings=tax_savings,
        )

    def _spread_tax(self, grant: Grant, spread: Decimal, settings: TaxSettings) -> Decimal:
        if spread <= 0:
            return Decimal("0")
        if grant.grant_type == GrantType.ISO:
            regular_tax = self.tax_engine.compute_ordinary_income_tax(settings.income, Decimal("0"), settings)
            return self.tax_engine.amt_engine.compute_amt(spread, settings, regular_tax=regular_tax).net_amt_due
        return self.tax_engine.compute_ordinary_income_tax(spread, settings.income, settings)

    def personalized_advice(
        self,
        grants: list[Grant],
        profile: FinancialProfile,
        tax_result: TaxResult | None = None,
    ) -> list[AdviceInsight]:
        """Diversification, cash runway, AMT, retirement and debt insights, highest priority first."""
        insights: list[AdviceInsight] = []

        equity_value = sum((grant.current_fmv * grant.shares_total for grant in grants), Decimal("0"))
        net_worth = equity_value + profile.other_investments + profile.available_cash - profile.debt
        concentration = equity_value / net_worth if net_worth > 0 else Decimal("0")
        if concentration > CONCENTRATION_THRESHOLD:
            high = concentration > HIGH_CONCENTRATION_THRESHOLD
            insights.append(
                AdviceInsight(
                    type="diversification",
                    title="Consider diversifying your investments",
                    content=(
                        f"Your equity makes up {concentration * 100:.0f}% of your net worth, which is "
                        f"{'significantly' if high else 'somewhat'} higher than the recommended 20-30%. "
                        "Consider exercising and selling a portion to diversify your investments."
                    ),
                    priority=InsightPriority.HIGH if high else InsightPriority.MEDIUM,
                )
            )

        exercise_cost = tax_result.totals.exercise_cost if tax_result else Decimal("0")
        net_proceeds = tax_result.totals.net_proceeds if tax_result else Decimal("0")
        monthly_burn = profile.monthly_expenses or DEFAULT_MONTHLY_EXPENSES
        months_of_runway = profile.available_cash / monthly_burn
        if exercise_cost > profile.available_cash * Decimal("0.5") and months_of_runway < MIN_RUNWAY_MONTHS:
            if profile.available_cash > 0:
                share_of_cash = f"{exercise_cost / profile.available_cash * 100:.0f}% of your available cash"
            else:
                share_of_cash = "more than your available cash"
            insights.append(
                AdviceInsight(
                    type="liquidity",
                    title="Maintain sufficient emergency funds",
                    content=(
                        f"Exercising would use {share_of_cash}, leaving you with only "
                        f"{months_of_runway:.1f} months of expenses covered. Consider exercising "
                        "fewer shares or building more cash reserves first."
                    ),
                    priority=InsightPriority.HIGH,
                )
            )

        amt_impact = tax_result.amt.net_amt_due if tax_result and tax_result.amt else Decimal("0")
        if amt_impact > 0 and amt_impact > profile.income * AMT_INCOME_SHARE:
            insights.append(
                AdviceInsight(
                    type="tax",
                    title="Consider AMT impact on your tax situation",
                    content=(
                        f"The AMT impact of this exercise ({format_currency(amt_impact)}) represents a "
                        "significant portion of your annual income. Consider exercising in December and "
                        "spreading the exercise over multiple tax years to manage AMT exposure."
                    ),
                    priority=InsightPriority.HIGH,
                )
            )

        # Rule of thumb: retirement savings of age/10 times income
        has_retirement_gap = (
            profile.income > 0 and profile.retirement_savings / profile.income < Decimal(profile.age) / 10
        )
        if has_retirement_gap and net_proceeds > RETIREMENT_PROCEEDS_THRESHOLD:
            insights.append(
                AdviceInsight(
                    type="retirement",
                    title="Balance equity with retirement savings",
                    content=(
                        "Consider directing a portion of any proceeds from a future equity sale toward "
                        "retirement accounts. Based on your age and income, boosting your retirement "
                        "savings could provide better long-term tax advantages while diversifying your "
                        "investments."
                    ),
                    priority=InsightPriority.MEDIUM,
                )
            )

        if profile.debt > HIGH_DEBT_THRESHOLD and net_proceeds > profile.debt:
            insights.append(
                AdviceInsight(
                    type="debt",
                    title="Consider debt reduction strategy",
                    content=(
                        "With your potential equity proceeds, you could eliminate your outstanding debt "
                        "and still have funds remaining for other investments. This would improve your "
                        "overall financial stability and reduce ongoing interest expenses."
                    ),
                    priority=InsightPriority.MEDIUM,
                )
            )

        # sorted() is stable, so insights of equal priority keep their rule order
        return sorted(insights, key=lambda insight: INSIGHT_ORDER[insight.priority])

    # ------------------------------------------------------------------
    # Combined strategy
    # ------------------------------------------------------------------

    def exercise_strategy(
        self,
        grant: Grant,
        profile: FinancialProfile,
        company: CompanyProfile,
        tax_settings: TaxSettings | None = None,
        as_of: date | None = None,
    ) -> ExerciseStrategy:
        """Factors, recommendation, sizing, special situations and exit scenarios for one grant."""
        as_of = as_of or date.today()
        settings = tax_settings or TaxSettings()
        vested_shares = self.vesting_engine.evaluate_at(grant, as_of).vested_shares

        inputs = DecisionInputs(
            strike_price=grant.strike_price,
            vested_shares=vested_shares,
            available_cash=profile.available_cash,
            current_income=profile.income,
            company_stage=company.stage,
            growth_rate=company.growth_rate,
            option_type=grant.grant_type,
            state_of_residence=settings.state_of_residence,
            time_to_expiration=self._years_to_expiration(grant, as_of),
        )
        factors = self.compute_decision_factors(inputs)

        # Conservative case: 3x growth, sold short-term
        tax_result = self.tax_engine.compute_tax(
            grant, grant.strike_price, grant.current_fmv * 3, vested_shares, False, settings
        )
        recommendation = self.recommend(factors, tax_result, grant)
        optimal = self.optimal_exercise_amount(grant, vested_shares, profile, settings)

        special_situations: list[SpecialSituation] = []
        if grant.grant_type == GrantType.ISO:
            limit = self.iso_limit_check(grant, vested_shares)
            if limit.is_limit_exceeded:
                special_situations.append(
                    SpecialSituation(
                        type="iso_limit_exceeded",
                        description=f"ISO limit exceeded. {limit.nso_shares} shares will convert to NSOs.",
                        impact="Some shares will be taxed as NSOs, potentially increasing immediate tax burden.",
                    )
                )
        early_exercise = self.analyze_early_exercise(grant, profile, settings, as_of)
        if early_exercise.recommendation == EarlyExerciseAdvice.EARLY_EXERCISE:
            special_situations.append(
                SpecialSituation(
                    type="early_exercise_beneficial",
                    description="Early exercise with 83(b) election may be advantageous.",
                    impact=f"Potential tax savings of approximately {format_currency(early_exercise.tax_savings)}.",
                )
            )
        if grant.is_double_trigger:
            special_situations.append(
                SpecialSituation(
                    type="double_trigger_rsu",
                    description="RSUs require both time-based vesting and a liquidity event to vest.",
                    impact="No tax implications until both triggers are met.",
                )
            )

        scenarios = [
            Scenario(name="Conservative", exit_price=grant.current_fmv * 2, is_long_term=True),
            Scenario(name="Moderate", exit_price=grant.current_fmv * 5, is_long_term=True),
            Scenario(name="Optimistic", exit_price=grant.current_fmv * 10, is_long_term=True),
        ]

        return ExerciseStrategy(
            recommendation=recommendation,
            optimal_exercise=optimal,
            tax_implications=TaxImplications(
                exercise_tax=tax_result.federal.federal_tax + tax_result.state.state_tax,
                amt_impact=tax_result.amt.net_amt_due if tax_result.amt else Decimal("0"),
                effective_tax_rate=tax_result.totals.effective_rate,
            ),
            decision_factors=factors,
            special_situations=special_situations,
            scenario_comparison=self.scenario_comparator.compare_scenarios(
                grant, scenarios, settings, shares=vested_shares
            ),
            early_exercise=early_exercise if early_exercise.applicable else None,
            insights=self.personalized_advice([grant], profile, tax_result),
        )

    @staticmethod
    def _years_to_expiration(grant: Grant, as_of: date) -> float:
        if grant.expiration_date is None:
            return DEFAULT_YEARS_TO_EXPIRATION
        return max(0.0, years_between(as_of, grant.expiration_date))
