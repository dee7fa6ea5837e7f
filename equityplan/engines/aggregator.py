"""Multi-grant aggregation.

Merges per-grant vesting schedules into calendar-month buckets and rolls a
portfolio up into totals by grant type and company.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from equityplan.engines.dates import add_months, first_of_month, month_key
from equityplan.engines.vesting import VestingEngine
from equityplan.models.grant import Grant
from equityplan.models.vesting import (
    GrantContribution,
    MonthBucket,
    PortfolioSummary,
    ValueShare,
)

logger = logging.getLogger(__name__)


class PortfolioAggregator:
    """Combines vesting across all of a user's grants."""

    def __init__(self, vesting_engine: VestingEngine | None = None) -> None:
        self.vesting_engine = vesting_engine or VestingEngine()

    def combined_schedule(
        self,
        grants: list[Grant],
        start_date: date,
        months_ahead: int = 36,
        include_double_trigger: bool = False,
    ) -> list[MonthBucket]:
        """Month-by-month newly vested shares and value between start_date and start_date + months_ahead.

        Grants that are fully vested on *start_date* and grants without a usable
        schedule contribute nothing. Double-trigger RSUs are left out unless
        *include_double_trigger* is set, in which case their time-based
        schedule is bucketed as if the liquidity event had already happened.
        """
        end_date = add_months(start_date, months_ahead)
        buckets: dict[str, MonthBucket] = {}

        for grant in grants:
            snapshot = self.vesting_engine.evaluate_at(grant, start_date)
            if not snapshot.schedule or snapshot.is_fully_vested:
                continue
            if snapshot.is_double_trigger and not include_double_trigger:
                continue

            previous = 0
            for event in snapshot.schedule:
                newly_vested = event.cumulative_shares_vested - previous
                previous = event.cumulative_shares_vested
                if event.date < start_date or event.date > end_date or newly_vested <= 0:
                    continue

                key = month_key(event.date)
                bucket = buckets.get(key)
                if bucket is None:
                    bucket = MonthBucket(month=key, date=first_of_month(event.date))
                    buckets[key] = bucket

                value = grant.current_fmv * newly_vested
                bucket.shares += newly_vested
                bucket.value += value
                bucket.per_grant_details.append(
                    GrantContribution(
                        company_name=grant.company_name,
                        grant_type=grant.grant_type,
                        shares=newly_vested,
                        value=value,
                    )
                )

        cumulative_shares = 0
        cumulative_value = Decimal("0")
        ordered = sorted(buckets.values(), key=lambda b: b.date)
        for bucket in ordered:
            cumulative_shares += bucket.shares
            cumulative_value += bucket.value
            bucket.cumulative_shares = cumulative_shares
            bucket.cumulative_value = cumulative_value

        logger.debug("Combined %d grants into %d month buckets", len(grants), len(ordered))
        return ordered

    def portfolio_summary(self, grants: list[Grant], as_of: date) -> PortfolioSummary:
        """Vested value, exercise cost and value splits across the portfolio on *as_of*."""
        summary = PortfolioSummary()
        by_type: dict[str, Decimal] = defaultdict(Decimal)
        by_company: dict[str, Decimal] = defaultdict(Decimal)

        for grant in grants:
            snapshot = self.vesting_engine.evaluate_at(grant, as_of)
            vested_value = grant.current_fmv * snapshot.vested_shares
            summary.total_shares += grant.shares_total
            summary.vested_shares += snapshot.vested_shares
            summary.unvested_shares += snapshot.unvested_shares
            summary.current_value += vested_value
            summary.exercise_cost += grant.strike_price * snapshot.vested_shares

            by_type[grant.grant_type.value] += vested_value
            by_company[grant.company_name or "Unknown"] += vested_value

        summary.potential_gain = summary.current_value - summary.exercise_cost
        summary.value_by_grant_type = _value_shares(by_type)
        summary.value_by_company = _value_shares(by_company)
        return summary


def _value_shares(values: dict[str, Decimal]) -> list[ValueShare]:
    """Named values sorted by value, descending, with their percentage of the total."""
    total = sum(values.values(), Decimal("0"))
    shares = [
        ValueShare(
            name=name,
            value=value,
            percentage=float(value / total * 100) if total > 0 else 0.0,
        )
        for name, value in values.items()
    ]
    return sorted(shares, key=lambda item: item.value, reverse=True)
