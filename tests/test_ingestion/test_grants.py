"""Unit tests for grant and tax-settings normalization."""

import json
from datetime import date
from decimal import Decimal

import pytest

from equityplan.exceptions import GrantFileError
from equityplan.ingestion.grants import load_grants, normalize_grant, normalize_tax_settings
from equityplan.models.enums import FilingStatus, GrantType, TaxModel, VestingCadence
from equityplan.models.grant import Grant
from equityplan.models.tax import TaxSettings


@pytest.fixture
def camel_record():
    return {
        "id": "g-1",
        "companyName": "Acme",
        "grantType": "ISO",
        "sharesTotal": 10000,
        "strikePrice": "1.00",
        "currentFMV": "4.50",
        "vestingStartDate": "2023-01-01",
        "vestingCliffDate": "2024-01-01",
        "vestingEndDate": "2027-01-01",
        "vestingCadence": "monthly",
        "grantDateFMV": "1.00",
    }


@pytest.fixture
def legacy_record():
    return {
        "company_name": "Globex",
        "grant_type": "nso",
        "shares": "5,000",
        "strike_price": 2,
        "fmv": "$8",
        "vesting_start_date": "2022-01-01T00:00:00Z",
        "vesting_end_date": "2026-01-01",
        "vesting_schedule": "Quarterly",
    }


class TestNormalizeGrant:
    def test_camel_case_record(self, camel_record):
        grant = normalize_grant(camel_record)

        assert grant.id == "g-1"
        assert grant.company_name == "Acme"
        assert grant.grant_type == GrantType.ISO
        assert grant.shares_total == 10000
        assert grant.strike_price == Decimal("1.00")
        assert grant.current_fmv == Decimal("4.50")
        assert grant.vesting_cliff_date == date(2024, 1, 1)
        assert grant.vesting_cadence == VestingCadence.MONTHLY
        assert grant.grant_date_fmv == Decimal("1.00")

    def test_legacy_record(self, legacy_record):
        grant = normalize_grant(legacy_record)

        assert grant.id is None
        assert grant.grant_type == GrantType.NSO
        assert grant.shares_total == 5000
        assert grant.current_fmv == Decimal("8")
        assert grant.vesting_start_date == date(2022, 1, 1)
        assert grant.vesting_cadence == VestingCadence.QUARTERLY
        assert grant.is_schedulable

    def test_empty_record_uses_defaults(self):
        grant = normalize_grant({})
        assert grant == Grant()
        assert not grant.is_schedulable

    def test_bad_values_become_defaults(self):
        grant = normalize_grant(
            {
                "grantType": "warrant",
                "sharesTotal": "lots",
                "strikePrice": -3,
                "currentFMV": "NaN",
                "vestingStartDate": "someday",
                "vestingCadence": "weekly",
            }
        )
        assert grant.grant_type == GrantType.ISO
        assert grant.shares_total == 0
        assert grant.strike_price == 0
        assert grant.current_fmv == 0
        assert grant.vesting_start_date is None
        assert grant.vesting_cadence == VestingCadence.MONTHLY

    def test_rsu_strike_forced_to_zero(self):
        grant = normalize_grant({"grantType": "RSU", "sharesTotal": 100, "strikePrice": "3.25"})
        assert grant.strike_price == 0

    def test_cliff_clamped_into_range(self, camel_record):
        early = normalize_grant({**camel_record, "vestingCliffDate": "2020-01-01"})
        late = normalize_grant({**camel_record, "vestingCliffDate": "2030-01-01"})
        assert early.vesting_cliff_date == date(2023, 1, 1)
        assert late.vesting_cliff_date == date(2027, 1, 1)

    def test_fractional_shares_truncated(self):
        assert normalize_grant({"sharesTotal": 100.9}).shares_total == 100

    def test_liquidity_flag(self):
        assert normalize_grant({"grantType": "RSU", "liquidityEventOnly": "yes"}).is_double_trigger
        assert not normalize_grant({"grantType": "RSU", "liquidityEventOnly": "no"}).is_double_trigger
        assert normalize_grant({"grantType": "RSU", "liquidity_event_only": True}).is_double_trigger

    def test_early_exercise_flag(self):
        assert normalize_grant({"allowsEarlyExercise": True}).allows_early_exercise
        assert normalize_grant({"allows_early_exercise": "yes"}).allows_early_exercise
        assert not normalize_grant({}).allows_early_exercise

    def test_grant_passthrough(self, iso_grant):
        assert normalize_grant(iso_grant) is iso_grant

    def test_non_mapping_record(self):
        assert normalize_grant(["not", "a", "grant"]) == Grant()

    def test_unschedulable_warns(self, caplog):
        with caplog.at_level("WARNING", logger="equityplan.ingestion.grants"):
            normalize_grant({"id": "g-9", "sharesTotal": 10})
        assert "g-9" in caplog.text


class TestLoadGrants:
    def test_list_file(self, tmp_path, camel_record, legacy_record):
        path = tmp_path / "grants.json"
        path.write_text(json.dumps([camel_record, legacy_record]))

        grants = load_grants(path)
        assert [g.company_name for g in grants] == ["Acme", "Globex"]

    def test_wrapped_file(self, tmp_path, camel_record):
        path = tmp_path / "grants.json"
        path.write_text(json.dumps({"grants": [camel_record]}))
        assert len(load_grants(path)) == 1

    def test_single_object_file(self, tmp_path, camel_record):
        path = tmp_path / "grant.json"
        path.write_text(json.dumps(camel_record))
        assert load_grants(path)[0].id == "g-1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(GrantFileError, match="file not found"):
            load_grants(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "grants.json"
        path.write_text("{not json")
        with pytest.raises(GrantFileError, match="invalid JSON") as exc_info:
            load_grants(path)
        assert exc_info.value.path == str(path)

    def test_directory_path(self, tmp_path):
        with pytest.raises(GrantFileError, match="cannot read file"):
            load_grants(tmp_path)

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "grants.json"
        path.write_bytes(b"\xff\xfe\x00[")
        with pytest.raises(GrantFileError, match="not UTF-8"):
            load_grants(path)


class TestNormalizeTaxSettings:
    def test_none_gives_defaults(self):
        assert normalize_tax_settings(None) == TaxSettings()

    def test_camel_case_keys(self):
        settings = normalize_tax_settings(
            {
                "federalRate": "0.32",
                "stateRate": "0.05",
                "filingStatus": "married",
                "income": 250000,
                "stateOfResidence": "NY",
                "taxYear": 2024,
                "taxModel": "FLAT",
                "priorAMTCredit": "1500",
            }
        )
        assert settings.federal_rate == Decimal("0.32")
        assert settings.state_rate == Decimal("0.05")
        assert settings.filing_status == FilingStatus.MFJ
        assert settings.income == Decimal("250000")
        assert settings.state_of_residence == "NY"
        assert settings.tax_year == 2024
        assert settings.tax_model == TaxModel.FLAT
        assert settings.prior_amt_credit == Decimal("1500")

    def test_bad_values_keep_defaults(self):
        settings = normalize_tax_settings(
            {"federal_rate": "1.7", "income": -10, "filing_status": "widowed", "state": "WA"}
        )
        defaults = TaxSettings()
        assert settings.federal_rate == defaults.federal_rate
        assert settings.income == defaults.income
        assert settings.filing_status == defaults.filing_status
        assert settings.state_of_residence == "WA"

    def test_settings_passthrough(self, flat_settings):
        assert normalize_tax_settings(flat_settings) is flat_settings
