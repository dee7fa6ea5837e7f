"""Vesting timeline and portfolio output models."""

import datetime as dt
from decimal import Decimal

from pydantic import ConfigDict

from equityplan.models.base import CamelModel
from equityplan.models.enums import GrantType, VestingEventLabel


class VestingEvent(CamelModel):
    model_config = ConfigDict(frozen=True)

    date: dt.date
    cumulative_shares_vested: int
    label: VestingEventLabel


class DetailedVestingResult(CamelModel):
    """Point-in-time vesting snapshot for one grant."""

    total_shares: int
    vested_shares: int = 0
    unvested_shares: int = 0
    vested_percentage: float = 0.0
    is_cliff_passed: bool = False
    is_fully_vested: bool = False
    is_double_trigger: bool = False
    next_vesting_date: dt.date | None = None
    next_vesting_shares: int = 0
    days_until_next_vesting: int | None = None
    schedule: list[VestingEvent] = []

    @classmethod
    def empty(cls, total_shares: int = 0) -> "DetailedVestingResult":
        """Zero-valued result returned for grants that cannot be scheduled."""
        total = max(total_shares, 0)
        return cls(total_shares=total, unvested_shares=total)


class UpcomingVest(CamelModel):
    date: dt.date
    shares: int
    label: VestingEventLabel
    value: Decimal


class LiquidityEventResult(CamelModel):
    """What a liquidity event releases for a double-trigger RSU grant."""

    applicable: bool
    message: str | None = None
    unvested_before_event: int = 0
    time_based_vested_shares: int = 0
    vested_after_event: int = 0
    vesting_value: Decimal = Decimal("0")
    taxable_income: Decimal = Decimal("0")
    remaining_unvested_shares: int = 0


class GrantContribution(CamelModel):
    company_name: str
    grant_type: GrantType
    shares: int
    value: Decimal


class MonthBucket(CamelModel):
    month: str
    date: dt.date
    shares: int = 0
    value: Decimal = Decimal("0")
    cumulative_shares: int = 0
    cumulative_value: Decimal = Decimal("0")
    per_grant_details: list[GrantContribution] = []


class ValueShare(CamelModel):
    name: str
    value: Decimal
    percentage: float = 0.0


class PortfolioSummary(CamelModel):
    total_shares: int = 0
    vested_shares: int = 0
    unvested_shares: int = 0
    current_value: Decimal = Decimal("0")
    exercise_cost: Decimal = Decimal("0")
    potential_gain: Decimal = Decimal("0")
    value_by_grant_type: list[ValueShare] = []
    value_by_company: list[ValueShare] = []
