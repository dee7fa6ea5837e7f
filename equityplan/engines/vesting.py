"""Vesting schedule generator.

Turns a grant's vesting shape (start, optional cliff, end, cadence) into an
ordered list of vesting events and answers point-in-time questions about it:
how many shares are vested on a date, when the next installment lands, and
what a liquidity event releases for double-trigger RSUs.
"""

import logging
import math
from datetime import date
from decimal import Decimal

from equityplan.engines.dates import (
    CADENCE_DAYS,
    add_cadence,
    add_days,
    add_months,
    days_between,
)
from equityplan.models.enums import VestingEventLabel
from equityplan.models.grant import Grant
from equityplan.models.vesting import (
    DetailedVestingResult,
    LiquidityEventResult,
    UpcomingVest,
    VestingEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_CLIFF_VESTING_FRACTION = Decimal("0.25")


def _effective_cliff(grant: Grant) -> date | None:
    """Cliff date clamped into [start, end]."""
    cliff = grant.vesting_cliff_date
    if cliff is None or grant.vesting_start_date is None or grant.vesting_end_date is None:
        return cliff
    return min(max(cliff, grant.vesting_start_date), grant.vesting_end_date)


class VestingEngine:
    """Generates vesting schedules and point-in-time vesting snapshots.

    Args:
        cliff_vesting_fraction: Share of the grant released at the cliff. The
            fraction is applied as-is regardless of how long the cliff is.
    """

    def __init__(self, cliff_vesting_fraction: Decimal | float = DEFAULT_CLIFF_VESTING_FRACTION) -> None:
        fraction = Decimal(str(cliff_vesting_fraction))
        self.cliff_vesting_fraction = min(max(fraction, Decimal("0")), Decimal("1"))

    def cliff_shares(self, grant: Grant) -> int:
        return math.floor(grant.shares_total * self.cliff_vesting_fraction)

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def generate_schedule(self, grant: Grant) -> list[VestingEvent]:
        """Ordered vesting events; cumulative shares never decrease and end at shares_total."""
        start = grant.vesting_start_date
        end = grant.vesting_end_date
        if not grant.is_schedulable or start is None or end is None:
            return []

        total = grant.shares_total
        cliff = _effective_cliff(grant)

        events = [VestingEvent(date=start, cumulative_shares_vested=0, label=VestingEventLabel.GRANT_DATE)]

        if cliff is not None and cliff >= end:
            events.append(VestingEvent(date=end, cumulative_shares_vested=total, label=VestingEventLabel.FINAL_VESTING))
            return events

        if cliff is not None:
            anchor, anchor_shares = cliff, self.cliff_shares(grant)
            events.append(
                VestingEvent(date=cliff, cumulative_shares_vested=anchor_shares, label=VestingEventLabel.CLIFF_VESTING)
            )
        else:
            anchor, anchor_shares = start, 0

        tranche = total - anchor_shares
        span = days_between(anchor, end)
        interval = CADENCE_DAYS[grant.vesting_cadence]
        periods = max(1, round(span / interval))

        for k in range(1, periods):
            elapsed = k * interval
            if elapsed >= span:
                break
            # Floor keeps the running total from overshooting before the end date
            cumulative = anchor_shares + math.floor(elapsed / span * tranche)
            events.append(
                VestingEvent(
                    date=add_days(anchor, elapsed),
                    cumulative_shares_vested=cumulative,
                    label=VestingEventLabel.REGULAR_VESTING,
                )
            )

        events.append(VestingEvent(date=end, cumulative_shares_vested=total, label=VestingEventLabel.FINAL_VESTING))
        return events

    # ------------------------------------------------------------------
    # Point-in-time evaluation
    # ------------------------------------------------------------------

    def evaluate_at(self, grant: Grant, as_of: date) -> DetailedVestingResult:
        """Vesting snapshot of *grant* on *as_of*. Unusable grants yield an empty result."""
        start = grant.vesting_start_date
        end = grant.vesting_end_date
        if not grant.is_schedulable or start is None or end is None:
            logger.debug("Grant %s cannot be scheduled, returning empty result", grant.id or grant.company_name)
            return DetailedVestingResult.empty(grant.shares_total)

        schedule = self.generate_schedule(grant)
        cliff = _effective_cliff(grant)
        total = grant.shares_total

        is_cliff_passed = cliff is None or as_of >= cliff

        if grant.is_double_trigger:
            # Time-based vesting is tracked but nothing vests before the liquidity trigger
            return DetailedVestingResult(
                total_shares=total,
                vested_shares=0,
                unvested_shares=total,
                vested_percentage=0.0,
                is_cliff_passed=is_cliff_passed,
                is_fully_vested=False,
                is_double_trigger=True,
                schedule=schedule,
            )

        vested = self.vested_shares_from_schedule(schedule, as_of)
        if as_of >= end:
            vested = total

        next_date, next_shares = self._next_vesting(grant, as_of, vested)
        days_until = days_between(as_of, next_date) if next_date is not None else None

        return DetailedVestingResult(
            total_shares=total,
            vested_shares=vested,
            unvested_shares=total - vested,
            vested_percentage=vested / total * 100,
            is_cliff_passed=is_cliff_passed,
            is_fully_vested=vested >= total,
            is_double_trigger=False,
            next_vesting_date=next_date,
            next_vesting_shares=next_shares,
            days_until_next_vesting=days_until,
            schedule=schedule,
        )

    @staticmethod
    def vested_shares_from_schedule(schedule: list[VestingEvent], as_of: date) -> int:
        vested = 0
        for event in schedule:
            if event.date > as_of:
                break
            vested = event.cumulative_shares_vested
        return vested

    def _next_vesting(self, grant: Grant, as_of: date, vested: int) -> tuple[date | None, int]:
        start = grant.vesting_start_date
        end = grant.vesting_end_date
        cliff = _effective_cliff(grant)
        total = grant.shares_total
        if start is None or end is None:
            return None, 0

        unvested = total - vested
        if unvested <= 0:
            return None, 0

        if as_of < start:
            if cliff is not None:
                return cliff, self._cliff_tranche(grant)
            return start, 0

        if cliff is not None and as_of < cliff:
            return cliff, self._cliff_tranche(grant)

        next_date = min(add_cadence(as_of, grant.vesting_cadence), end)
        if next_date >= end:
            return end, unvested

        tranche = total - (self.cliff_shares(grant) if cliff is not None else 0)
        installments = max(1, round(days_between(start, end) / CADENCE_DAYS[grant.vesting_cadence]))
        installment = math.floor(tranche / installments)
        return next_date, min(installment, unvested)

    def _cliff_tranche(self, grant: Grant) -> int:
        end = grant.vesting_end_date
        cliff = _effective_cliff(grant)
        if cliff is not None and end is not None and cliff >= end:
            return grant.shares_total
        return self.cliff_shares(grant)

    # ------------------------------------------------------------------
    # Lookups built on the schedule
    # ------------------------------------------------------------------

    def upcoming_vesting_events(self, grant: Grant, as_of: date, months_ahead: int = 6) -> list[UpcomingVest]:
        """Installments landing in (as_of, as_of + months_ahead], valued at current FMV."""
        if grant.is_double_trigger:
            return []

        snapshot = self.evaluate_at(grant, as_of)
        if snapshot.unvested_shares <= 0:
            return []

        horizon = add_months(as_of, months_ahead)
        upcoming: list[UpcomingVest] = []
        previous = 0
        for event in snapshot.schedule:
            newly_vested = event.cumulative_shares_vested - previous
            previous = event.cumulative_shares_vested
            if event.date <= as_of or event.date > horizon or newly_vested <= 0:
                continue
            upcoming.append(
                UpcomingVest(
                    date=event.date,
                    shares=newly_vested,
                    label=event.label,
                    value=grant.current_fmv * newly_vested,
                )
            )
        return upcoming

    def evaluate_liquidity_event(self, grant: Grant, event_date: date, share_price: Decimal) -> LiquidityEventResult:
        """Shares a liquidity event on *event_date* releases for a double-trigger RSU."""
        if not grant.is_double_trigger:
            return LiquidityEventResult(applicable=False, message="This grant is not a double-trigger RSU")

        share_price = max(share_price, Decimal("0"))
        time_based = self.evaluate_at(grant.model_copy(update={"liquidity_event_only": False}), event_date)
        released = time_based.vested_shares
        value = share_price * released

        return LiquidityEventResult(
            applicable=True,
            unvested_before_event=grant.shares_total,
            time_based_vested_shares=released,
            vested_after_event=released,
            vesting_value=value,
            taxable_income=value,
            remaining_unvested_shares=grant.shares_total - released,
        )
