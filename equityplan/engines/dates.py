"""Date and period arithmetic shared by the vesting, aggregation and advice engines."""

from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from equityplan.models.enums import VestingCadence

# Average period lengths used to lay out vesting installments.
CADENCE_DAYS: dict[VestingCadence, float] = {
    VestingCadence.MONTHLY: 30.44,
    VestingCadence.QUARTERLY: 91.25,
    VestingCadence.YEARLY: 365.0,
}

CADENCE_MONTHS: dict[VestingCadence, int] = {
    VestingCadence.MONTHLY: 1,
    VestingCadence.QUARTERLY: 3,
    VestingCadence.YEARLY: 12,
}


def add_months(d: date, months: int) -> date:
    """Add *months* calendar months, clamping the day to the target month's length.

    Jan 31 + 1 month -> Feb 28 (or Feb 29 in a leap year).
    """
    return d + relativedelta(months=months)


def add_quarters(d: date, quarters: int) -> date:
    return add_months(d, quarters * 3)


def add_years(d: date, years: int) -> date:
    """Add *years* to a date; Feb 29 lands on Feb 28 in a non-leap year."""
    return d + relativedelta(years=years)


def add_cadence(d: date, cadence: VestingCadence, periods: int = 1) -> date:
    """Advance *d* by whole cadence periods on the calendar."""
    return add_months(d, CADENCE_MONTHS[cadence] * periods)


def add_days(d: date, days: float) -> date:
    """Add a possibly fractional number of days; the fraction is truncated."""
    return d + timedelta(days=int(days))


def days_between(start: date, end: date) -> int:
    """Signed whole days from *start* to *end*."""
    return (end - start).days


def years_between(start: date, end: date) -> float:
    return days_between(start, end) / 365


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def first_of_month(d: date) -> date:
    return d.replace(day=1)


def parse_date(value: object) -> date | None:
    """Best-effort conversion of stored date values.

    Accepts ``date``/``datetime`` objects and ISO-8601 strings, including full
    timestamps such as ``2024-01-01T00:00:00Z``. Returns None for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None
