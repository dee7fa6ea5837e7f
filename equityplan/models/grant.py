"""Equity grant model."""

from datetime import date
from decimal import Decimal

from pydantic import ConfigDict, Field

from equityplan.models.base import CamelModel
from equityplan.models.enums import GrantType, VestingCadence


class Grant(CamelModel):
    """A single stock grant, as consumed by every engine.

    Built once by ``equityplan.ingestion.grants.normalize_grant``; engines never
    fill in defaults themselves.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    company_name: str = ""
    grant_type: GrantType = GrantType.ISO
    shares_total: int = Field(default=0, ge=0)
    strike_price: Decimal = Field(default=Decimal("0"), ge=0)
    current_fmv: Decimal = Field(default=Decimal("0"), ge=0, alias="currentFMV")
    vesting_start_date: date | None = None
    vesting_cliff_date: date | None = None
    vesting_end_date: date | None = None
    vesting_cadence: VestingCadence = VestingCadence.MONTHLY
    liquidity_event_only: bool = False
    allows_early_exercise: bool = False
    grant_date: date | None = None
    expiration_date: date | None = None
    grant_date_fmv: Decimal | None = Field(default=None, alias="grantDateFMV")

    @property
    def is_double_trigger(self) -> bool:
        return self.grant_type == GrantType.RSU and self.liquidity_event_only

    @property
    def is_schedulable(self) -> bool:
        """True when the grant carries enough data to build a vesting schedule."""
        if self.shares_total <= 0:
            return False
        if self.vesting_start_date is None or self.vesting_end_date is None:
            return False
        return self.vesting_start_date <= self.vesting_end_date

    @property
    def is_option(self) -> bool:
        return self.grant_type in (GrantType.ISO, GrantType.NSO)
