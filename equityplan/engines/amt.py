"""ISO AMT computation engine.

Implements the tentative minimum tax per Form 6251 on an ISO exercise spread
and applies a prior-year AMT credit against the resulting excess.
"""

import logging
from decimal import Decimal

from equityplan.engines.brackets import (
    AMT_28_PERCENT_THRESHOLD,
    AMT_EXEMPTION,
    AMT_LOWER_RATE,
    AMT_PHASEOUT_RATE,
    AMT_PHASEOUT_START,
    AMT_UPPER_RATE,
    latest_table,
    latest_threshold,
)
from equityplan.models.enums import FilingStatus
from equityplan.models.tax import AMTResult, TaxSettings

logger = logging.getLogger(__name__)


class AMTEngine:
    """Computes AMT owed on an ISO exercise spread."""

    def compute_amt(
        self,
        spread: Decimal,
        settings: TaxSettings,
        regular_tax: Decimal | None = None,
    ) -> AMTResult:
        """Compute AMT per Form 6251 for a spread stacked on the user's income.

        Args:
            spread: ISO bargain element (FMV at exercise - exercise price) x shares.
            settings: Income, filing status, tax year and prior AMT credit.
            regular_tax: Regular federal tax on ``settings.income``. When omitted
                it is approximated as ``income x federal_rate``.

        Returns:
            AMTResult with ``net_amt_due`` (current-year AMT after credit) and
            ``amt_credit`` (credit carried to future years).
        """
        spread = max(spread, Decimal("0"))
        income = max(settings.income, Decimal("0"))
        if regular_tax is None:
            regular_tax = income * settings.federal_rate

        # Step 1: AMTI
        amti = income + spread

        # Step 2: Exemption with phase-out
        exemption = self.compute_exemption(amti, settings.filing_status, settings.tax_year)

        # Step 3: Tentative minimum tax on the AMT base
        amt_base = max(amti - exemption, Decimal("0"))
        tentative_minimum_tax = self.compute_tentative_minimum_tax(
            amt_base, settings.filing_status, settings.tax_year
        )

        # Step 4: AMT = excess over regular tax
        excess = max(tentative_minimum_tax - regular_tax, Decimal("0"))

        # Step 5: Prior-year credit offsets this year's AMT excess only
        credit_used, credit_remaining = self.compute_amt_credit(settings.prior_amt_credit, excess)
        net_amt_due = excess - credit_used

        logger.debug(
            "AMT: amti=%s exemption=%s tmt=%s regular=%s excess=%s credit_used=%s",
            amti, exemption, tentative_minimum_tax, regular_tax, excess, credit_used,
        )

        return AMTResult(
            amt_income=spread,
            amti=amti,
            exemption=exemption,
            tentative_minimum_tax=tentative_minimum_tax,
            regular_tax=regular_tax,
            amt_credit_used=credit_used,
            net_amt_due=net_amt_due,
            amt_credit=net_amt_due + credit_remaining,
        )

    def compute_exemption(self, amti: Decimal, filing_status: FilingStatus, tax_year: int) -> Decimal:
        """AMT exemption reduced by 25 cents per dollar of AMTI above the phase-out start."""
        exemption_amount = latest_table(AMT_EXEMPTION, tax_year, filing_status)
        phaseout_start = latest_table(AMT_PHASEOUT_START, tax_year, filing_status)
        if exemption_amount is None or phaseout_start is None:
            return Decimal("0")

        exemption_reduction = max(amti - phaseout_start, Decimal("0")) * AMT_PHASEOUT_RATE
        return max(exemption_amount - exemption_reduction, Decimal("0"))

    def compute_tentative_minimum_tax(
        self, amt_base: Decimal, filing_status: FilingStatus, tax_year: int
    ) -> Decimal:
        if amt_base <= Decimal("0"):
            return Decimal("0")

        breakpoint = latest_threshold(AMT_28_PERCENT_THRESHOLD, tax_year)

        # MFS filers use half the 28% threshold per IRC Section 55(b)(1)(A)(i)
        if filing_status == FilingStatus.MFS:
            breakpoint = breakpoint / 2

        if amt_base <= breakpoint:
            return amt_base * AMT_LOWER_RATE
        return breakpoint * AMT_LOWER_RATE + (amt_base - breakpoint) * AMT_UPPER_RATE

    def compute_amt_credit(
        self,
        prior_year_amt_credit: Decimal,
        amt_excess: Decimal,
    ) -> tuple[Decimal, Decimal]:
        """Apply a prior-year AMT credit against this year's AMT excess.

        The credit never exceeds the excess, so the AMT due is never negative.

        Returns:
            (credit_used, credit_remaining)
        """
        if prior_year_amt_credit <= Decimal("0"):
            return Decimal("0"), Decimal("0")

        credit_used = min(prior_year_amt_credit, max(amt_excess, Decimal("0")))
        return credit_used, prior_year_amt_credit - credit_used
