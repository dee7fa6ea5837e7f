"""Tax bracket configuration.

Federal ordinary and long-term capital gains brackets plus AMT parameters,
keyed by tax year and filing status. Never hardcode brackets in computation
functions.

Sources:
  - 2024: IRS Rev. Proc. 2023-34
  - 2025: IRS Rev. Proc. 2024-40
"""

import logging
from decimal import Decimal
from typing import TypeVar

from equityplan.models.enums import FilingStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Federal ordinary income brackets: {year: {filing_status: [(upper_bound, rate), ...]}}
# Upper bound is Decimal or None for the top bracket.
# ---------------------------------------------------------------------------
FEDERAL_BRACKETS: dict[int, dict[FilingStatus, list[tuple[Decimal | None, Decimal]]]] = {
    2024: {
        FilingStatus.SINGLE: [
            (Decimal("11600"), Decimal("0.10")),
            (Decimal("47150"), Decimal("0.12")),
            (Decimal("100525"), Decimal("0.22")),
            (Decimal("191950"), Decimal("0.24")),
            (Decimal("243725"), Decimal("0.32")),
            (Decimal("609350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFJ: [
            (Decimal("23200"), Decimal("0.10")),
            (Decimal("94300"), Decimal("0.12")),
            (Decimal("201050"), Decimal("0.22")),
            (Decimal("383900"), Decimal("0.24")),
            (Decimal("487450"), Decimal("0.32")),
            (Decimal("731200"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFS: [
            (Decimal("11600"), Decimal("0.10")),
            (Decimal("47150"), Decimal("0.12")),
            (Decimal("100525"), Decimal("0.22")),
            (Decimal("191950"), Decimal("0.24")),
            (Decimal("243725"), Decimal("0.32")),
            (Decimal("365600"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.HOH: [
            (Decimal("16550"), Decimal("0.10")),
            (Decimal("63100"), Decimal("0.12")),
            (Decimal("100500"), Decimal("0.22")),
            (Decimal("191950"), Decimal("0.24")),
            (Decimal("243700"), Decimal("0.32")),
            (Decimal("609350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
    },
    2025: {
        FilingStatus.SINGLE: [
            (Decimal("11925"), Decimal("0.10")),
            (Decimal("48475"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250525"), Decimal("0.32")),
            (Decimal("626350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFJ: [
            (Decimal("23850"), Decimal("0.10")),
            (Decimal("96950"), Decimal("0.12")),
            (Decimal("206700"), Decimal("0.22")),
            (Decimal("394600"), Decimal("0.24")),
            (Decimal("501050"), Decimal("0.32")),
            (Decimal("751600"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFS: [
            (Decimal("11925"), Decimal("0.10")),
            (Decimal("48475"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250525"), Decimal("0.32")),
            (Decimal("375800"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.HOH: [
            (Decimal("17000"), Decimal("0.10")),
            (Decimal("64850"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250500"), Decimal("0.32")),
            (Decimal("626350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
    },
}

# ---------------------------------------------------------------------------
# Federal LTCG rate brackets: (upper_bound, rate)
# Taxable-income thresholds for the 0%/15%/20% rates, IRC Section 1(h).
# ---------------------------------------------------------------------------
FEDERAL_LTCG_BRACKETS: dict[int, dict[FilingStatus, list[tuple[Decimal | None, Decimal]]]] = {
    2024: {
        FilingStatus.SINGLE: [
            (Decimal("47025"), Decimal("0.00")),
            (Decimal("518900"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
        FilingStatus.MFJ: [
            (Decimal("94050"), Decimal("0.00")),
            (Decimal("583750"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
        FilingStatus.MFS: [
            (Decimal("47025"), Decimal("0.00")),
            (Decimal("291850"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
        FilingStatus.HOH: [
            (Decimal("63000"), Decimal("0.00")),
            (Decimal("551350"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
    },
    2025: {
        FilingStatus.SINGLE: [
            (Decimal("48350"), Decimal("0.00")),
            (Decimal("533400"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
        FilingStatus.MFJ: [
            (Decimal("96700"), Decimal("0.00")),
            (Decimal("600050"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
        FilingStatus.MFS: [
            (Decimal("48350"), Decimal("0.00")),
            (Decimal("300000"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
        FilingStatus.HOH: [
            (Decimal("64750"), Decimal("0.00")),
            (Decimal("566700"), Decimal("0.15")),
            (None, Decimal("0.20")),
        ],
    },
}

# ---------------------------------------------------------------------------
# Simplified long-term gains thresholds for the flat tax model.
# The rate is chosen once from (base income + gain) and applied to the whole gain.
# ---------------------------------------------------------------------------
FLAT_LTCG_THRESHOLDS: list[tuple[Decimal | None, Decimal]] = [
    (Decimal("40000"), Decimal("0.00")),
    (Decimal("441450"), Decimal("0.15")),
    (None, Decimal("0.20")),
]

# ---------------------------------------------------------------------------
# AMT exemption amounts (Form 6251)
# ---------------------------------------------------------------------------
AMT_EXEMPTION: dict[int, dict[FilingStatus, Decimal]] = {
    2024: {
        FilingStatus.SINGLE: Decimal("85700"),
        FilingStatus.MFJ: Decimal("133300"),
        FilingStatus.MFS: Decimal("66650"),
        FilingStatus.HOH: Decimal("85700"),
    },
    2025: {
        FilingStatus.SINGLE: Decimal("88100"),
        FilingStatus.MFJ: Decimal("137000"),
        FilingStatus.MFS: Decimal("68500"),
        FilingStatus.HOH: Decimal("88100"),
    },
}

# AMT exemption phase-out start
AMT_PHASEOUT_START: dict[int, dict[FilingStatus, Decimal]] = {
    2024: {
        FilingStatus.SINGLE: Decimal("609350"),
        FilingStatus.MFJ: Decimal("1218700"),
        FilingStatus.MFS: Decimal("609350"),
        FilingStatus.HOH: Decimal("609350"),
    },
    2025: {
        FilingStatus.SINGLE: Decimal("626350"),
        FilingStatus.MFJ: Decimal("1252700"),
        FilingStatus.MFS: Decimal("626350"),
        FilingStatus.HOH: Decimal("626350"),
    },
}

AMT_PHASEOUT_RATE = Decimal("0.25")

# AMT 28% threshold applies to all filing statuses (MFS gets half)
AMT_28_PERCENT_THRESHOLD: dict[int, Decimal] = {
    2024: Decimal("232600"),
    2025: Decimal("239100"),
}

AMT_LOWER_RATE = Decimal("0.26")
AMT_UPPER_RATE = Decimal("0.28")

# ---------------------------------------------------------------------------
# ISO $100,000 rule, IRC Section 422(d)
# ---------------------------------------------------------------------------
ISO_ANNUAL_LIMIT = Decimal("100000")


def latest_table(table: dict[int, dict[FilingStatus, T]], tax_year: int, filing_status: FilingStatus) -> T | None:
    """Look up a year/status table entry, falling back to the latest year that has the status.

    Returns None only when no year carries the filing status at all.
    """
    entry = table.get(tax_year, {}).get(filing_status)
    if entry is not None:
        return entry

    candidates = sorted(year for year, by_status in table.items() if filing_status in by_status)
    if not candidates:
        return None
    earlier = [year for year in candidates if year <= tax_year]
    fallback_year = earlier[-1] if earlier else candidates[-1]
    logger.warning(
        "No table entry for %s/%s, using %s values",
        tax_year, filing_status.value, fallback_year,
    )
    return table[fallback_year][filing_status]


def latest_threshold(table: dict[int, Decimal], tax_year: int) -> Decimal:
    """Same fallback rule as ``latest_table`` for tables keyed by year only."""
    if tax_year in table:
        return table[tax_year]
    earlier = [year for year in sorted(table) if year <= tax_year]
    fallback_year = earlier[-1] if earlier else max(table)
    logger.warning("No threshold for %s, using %s values", tax_year, fallback_year)
    return table[fallback_year]
