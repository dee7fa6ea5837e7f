"""Tax settings, tax result and scenario comparison models."""

from decimal import Decimal

from pydantic import ConfigDict, Field, field_validator

from equityplan.models.base import CamelModel
from equityplan.models.enums import FilingStatus, TaxModel

_FILING_STATUS_ALIASES: dict[str, FilingStatus] = {
    "single": FilingStatus.SINGLE,
    "married": FilingStatus.MFJ,
    "mfj": FilingStatus.MFJ,
    "married_filing_jointly": FilingStatus.MFJ,
    "mfs": FilingStatus.MFS,
    "married_filing_separately": FilingStatus.MFS,
    "hoh": FilingStatus.HOH,
    "head_of_household": FilingStatus.HOH,
}


class TaxSettings(CamelModel):
    """User tax assumptions. Every field has a default; engines never mutate it."""

    model_config = ConfigDict(frozen=True)

    federal_rate: Decimal = Field(default=Decimal("0.35"), ge=0, le=1)
    state_rate: Decimal = Field(default=Decimal("0.10"), ge=0, le=1)
    filing_status: FilingStatus = FilingStatus.SINGLE
    income: Decimal = Field(default=Decimal("150000"), ge=0)
    state_of_residence: str = "CA"
    tax_year: int = 2025
    tax_model: TaxModel = TaxModel.BRACKETED
    state_allocations: dict[str, Decimal] = {}
    state_rates: dict[str, Decimal] = {}
    prior_amt_credit: Decimal = Field(default=Decimal("0"), ge=0, alias="priorAMTCredit")

    @field_validator("filing_status", mode="before")
    @classmethod
    def _coerce_filing_status(cls, value: object) -> object:
        if isinstance(value, str):
            key = value.strip().lower().replace(" ", "_").replace("-", "_")
            if key in _FILING_STATUS_ALIASES:
                return _FILING_STATUS_ALIASES[key]
            return value.strip().upper()
        return value


class FederalTax(CamelModel):
    ordinary_income: Decimal = Decimal("0")
    short_term_gains: Decimal = Decimal("0")
    long_term_gains: Decimal = Decimal("0")
    ordinary_tax: Decimal = Decimal("0")
    capital_gains_tax: Decimal = Decimal("0")
    federal_tax: Decimal = Decimal("0")


class AMTResult(CamelModel):
    amt_income: Decimal = Field(alias="amtIncome")
    amti: Decimal = Decimal("0")
    exemption: Decimal
    tentative_minimum_tax: Decimal = Decimal("0")
    regular_tax: Decimal = Decimal("0")
    amt_credit_used: Decimal = Field(default=Decimal("0"), alias="amtCreditUsed")
    net_amt_due: Decimal = Field(alias="netAMTDue")
    amt_credit: Decimal = Field(default=Decimal("0"), alias="amtCredit")


class StateAllocation(CamelModel):
    state_code: str
    allocation: Decimal
    allocated_income: Decimal = Decimal("0")
    state_rate: Decimal = Decimal("0")
    state_tax: Decimal = Decimal("0")


class StateTax(CamelModel):
    state_tax: Decimal = Decimal("0")
    state_breakdown: list[StateAllocation] = []


class TaxTotals(CamelModel):
    exercise_cost: Decimal = Decimal("0")
    gross_proceeds: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    effective_rate: float = 0.0
    net_proceeds: Decimal = Decimal("0")


class TaxResult(CamelModel):
    """Full tax and proceeds breakdown for one (grant, prices, shares, settings) tuple."""

    federal: FederalTax
    amt: AMTResult | None = None
    state: StateTax
    totals: TaxTotals
    assumptions: TaxSettings


class Scenario(CamelModel):
    name: str
    exit_price: Decimal = Field(ge=0)
    is_long_term: bool = False


class ScenarioComparisonRow(CamelModel):
    name: str
    exit_price: Decimal
    is_long_term: bool
    exercise_cost: Decimal
    gross_proceeds: Decimal
    net_proceeds: Decimal
    tax_amount: Decimal
    effective_tax_rate: float
    roi: float
