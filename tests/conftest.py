"""Shared test fixtures for equityplan."""

from datetime import date
from decimal import Decimal

import pytest

from equityplan.models.enums import GrantType, TaxModel, VestingCadence
from equityplan.models.grant import Grant
from equityplan.models.tax import TaxSettings


@pytest.fixture
def iso_grant() -> Grant:
    """4-year monthly ISO with a 1-year cliff."""
    return Grant(
        id="grant-iso-001",
        company_name="Acme",
        grant_type=GrantType.ISO,
        shares_total=10000,
        strike_price=Decimal("1.00"),
        current_fmv=Decimal("1.00"),
        vesting_start_date=date(2023, 1, 1),
        vesting_cliff_date=date(2024, 1, 1),
        vesting_end_date=date(2027, 1, 1),
        vesting_cadence=VestingCadence.MONTHLY,
    )


@pytest.fixture
def nso_grant() -> Grant:
    return Grant(
        id="grant-nso-001",
        company_name="Globex",
        grant_type=GrantType.NSO,
        shares_total=5000,
        strike_price=Decimal("2"),
        current_fmv=Decimal("8"),
        vesting_start_date=date(2022, 1, 1),
        vesting_end_date=date(2026, 1, 1),
        vesting_cadence=VestingCadence.QUARTERLY,
    )


@pytest.fixture
def rsu_grant() -> Grant:
    return Grant(
        id="grant-rsu-001",
        company_name="Initech",
        grant_type=GrantType.RSU,
        shares_total=4800,
        current_fmv=Decimal("50"),
        vesting_start_date=date(2024, 1, 1),
        vesting_end_date=date(2028, 1, 1),
        vesting_cadence=VestingCadence.MONTHLY,
    )


@pytest.fixture
def double_trigger_rsu(rsu_grant: Grant) -> Grant:
    return rsu_grant.model_copy(update={"id": "grant-rsu-dt", "liquidity_event_only": True})


@pytest.fixture
def flat_settings() -> TaxSettings:
    """Flat model: 35% federal, 10% state, $150k other income."""
    return TaxSettings(tax_model=TaxModel.FLAT)


@pytest.fixture
def bracket_settings() -> TaxSettings:
    return TaxSettings(tax_year=2025, income=Decimal("150000"))
