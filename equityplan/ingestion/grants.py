"""Grant and tax-settings normalization.

Records arrive from the persistence layer in two shapes: the camelCase wire
shape (``sharesTotal``, ``currentFMV``) and the older snake_case store shape
(``shares``, ``current_fmv``, ``vesting_schedule``). Defaults are filled in
here, once, so the engines only ever see fully-typed ``Grant`` and
``TaxSettings`` values.
"""

import json
import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from equityplan.engines.dates import parse_date
from equityplan.exceptions import GrantFileError
from equityplan.models.enums import GrantType, VestingCadence
from equityplan.models.grant import Grant
from equityplan.models.tax import TaxSettings

logger = logging.getLogger(__name__)

# Field name -> accepted record keys, most specific first
_GRANT_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id", "grantId", "grant_id"),
    "company_name": ("companyName", "company_name", "company"),
    "grant_type": ("grantType", "grant_type", "type"),
    "shares_total": ("sharesTotal", "shares_total", "shares"),
    "strike_price": ("strikePrice", "strike_price"),
    "current_fmv": ("currentFMV", "currentFmv", "current_fmv", "fmv"),
    "vesting_start_date": ("vestingStartDate", "vesting_start_date", "vestingStart"),
    "vesting_cliff_date": ("vestingCliffDate", "vesting_cliff_date", "cliff"),
    "vesting_end_date": ("vestingEndDate", "vesting_end_date", "vestingEnd"),
    "vesting_cadence": ("vestingCadence", "vesting_cadence", "vesting_schedule", "vestingSchedule"),
    "liquidity_event_only": ("liquidityEventOnly", "liquidity_event_only"),
    "allows_early_exercise": ("allowsEarlyExercise", "allows_early_exercise", "earlyExercise"),
    "grant_date": ("grantDate", "grant_date"),
    "expiration_date": ("expirationDate", "expiration_date"),
    "grant_date_fmv": ("grantDateFMV", "grantDateFmv", "grant_date_fmv"),
}

_CADENCE_ALIASES: dict[str, VestingCadence] = {
    "monthly": VestingCadence.MONTHLY,
    "month": VestingCadence.MONTHLY,
    "quarterly": VestingCadence.QUARTERLY,
    "quarter": VestingCadence.QUARTERLY,
    "yearly": VestingCadence.YEARLY,
    "annual": VestingCadence.YEARLY,
    "annually": VestingCadence.YEARLY,
}

_TRUE_STRINGS = frozenset({"true", "yes", "1", "y"})


def normalize_grant(record: Grant | Mapping[str, Any]) -> Grant:
    """Build a ``Grant`` from a loose record. Never raises.

    Missing or unparsable numbers become 0, negatives are clamped to 0, an
    unknown grant type becomes ISO, an unknown cadence becomes monthly and
    unparsable dates become None. RSU strike prices are forced to 0 and a
    cliff outside [start, end] is clamped into that range.
    """
    if isinstance(record, Grant):
        return record
    if not isinstance(record, Mapping):
        logger.warning("Ignoring grant record of type %s", type(record).__name__)
        return Grant()

    raw = {field: _first(record, keys) for field, keys in _GRANT_KEYS.items()}
    label = raw["id"] or raw["company_name"] or "<unnamed>"

    grant_type = _grant_type(raw["grant_type"], label)
    shares_total = _non_negative_int(raw["shares_total"], "shares_total", label)
    strike_price = _non_negative_decimal(raw["strike_price"], "strike_price", label)
    if grant_type == GrantType.RSU and strike_price != 0:
        logger.debug("Grant %s: RSU strike price %s forced to 0", label, strike_price)
        strike_price = Decimal("0")

    start = _date(raw["vesting_start_date"], "vesting_start_date", label)
    end = _date(raw["vesting_end_date"], "vesting_end_date", label)
    cliff = _date(raw["vesting_cliff_date"], "vesting_cliff_date", label)
    if cliff is not None and start is not None and end is not None and start <= end:
        clamped = min(max(cliff, start), end)
        if clamped != cliff:
            logger.debug("Grant %s: cliff %s clamped to %s", label, cliff, clamped)
            cliff = clamped

    grant_date_fmv = None
    if raw["grant_date_fmv"] is not None:
        grant_date_fmv = _non_negative_decimal(raw["grant_date_fmv"], "grant_date_fmv", label)

    grant = Grant(
        id=str(raw["id"]) if raw["id"] is not None else None,
        company_name=str(raw["company_name"] or ""),
        grant_type=grant_type,
        shares_total=shares_total,
        strike_price=strike_price,
        current_fmv=_non_negative_decimal(raw["current_fmv"], "current_fmv", label),
        vesting_start_date=start,
        vesting_cliff_date=cliff,
        vesting_end_date=end,
        vesting_cadence=_cadence(raw["vesting_cadence"], label),
        liquidity_event_only=_bool(raw["liquidity_event_only"]),
        allows_early_exercise=_bool(raw["allows_early_exercise"]),
        grant_date=_date(raw["grant_date"], "grant_date", label),
        expiration_date=_date(raw["expiration_date"], "expiration_date", label),
        grant_date_fmv=grant_date_fmv,
    )
    if not grant.is_schedulable:
        logger.warning("Grant %s has no usable vesting schedule", label)
    return grant


def load_grants(path: Path) -> list[Grant]:
    """Read a JSON file holding one grant object or a list of them."""
    if not path.exists():
        raise GrantFileError(str(path), "file not found")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise GrantFileError(str(path), "file is not UTF-8 text") from e
    except OSError as e:
        raise GrantFileError(str(path), f"cannot read file ({e.strerror or e})") from e
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise GrantFileError(str(path), f"invalid JSON ({e.msg} at line {e.lineno})") from e

    if isinstance(raw, Mapping) and isinstance(raw.get("grants"), list):
        raw = raw["grants"]
    records = raw if isinstance(raw, list) else [raw]
    return [normalize_grant(record) for record in records]


# --- Tax settings ---

_SETTINGS_KEYS: dict[str, tuple[str, ...]] = {
    "federal_rate": ("federalRate", "federal_rate"),
    "state_rate": ("stateRate", "state_rate"),
    "filing_status": ("filingStatus", "filing_status"),
    "income": ("income", "currentIncome", "current_income"),
    "state_of_residence": ("stateOfResidence", "state_of_residence", "state"),
    "tax_year": ("taxYear", "tax_year"),
    "tax_model": ("taxModel", "tax_model"),
    "state_allocations": ("stateAllocations", "state_allocations"),
    "state_rates": ("stateRates", "state_rates"),
    "prior_amt_credit": ("priorAMTCredit", "priorAmtCredit", "prior_amt_credit"),
}


def normalize_tax_settings(record: TaxSettings | Mapping[str, Any] | None) -> TaxSettings:
    """Build ``TaxSettings`` from a loose record, keeping defaults for anything unusable. Never raises."""
    if isinstance(record, TaxSettings):
        return record
    if not isinstance(record, Mapping):
        return TaxSettings()

    values: dict[str, Any] = {}
    for field, keys in _SETTINGS_KEYS.items():
        value = _first(record, keys)
        if value is None or value == "":
            continue
        if field == "tax_model" and isinstance(value, str):
            value = value.strip().lower()
        values[field] = value

    # Validate field by field so one bad value only loses that field
    accepted: dict[str, Any] = {}
    for field, value in values.items():
        try:
            TaxSettings.model_validate({**accepted, field: value})
        except ValidationError:
            logger.debug("Tax setting %s=%r rejected, using default", field, value)
            continue
        accepted[field] = value
    return TaxSettings.model_validate(accepted)


# --- Coercion helpers ---


def _first(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).replace(",", "").replace("$", "").strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _non_negative_decimal(value: Any, field: str, label: str) -> Decimal:
    result = _to_decimal(value)
    if result is None:
        if value is not None:
            logger.debug("Grant %s: unparsable %s %r, using 0", label, field, value)
        return Decimal("0")
    if result < 0:
        logger.debug("Grant %s: negative %s %s clamped to 0", label, field, result)
        return Decimal("0")
    return result


def _non_negative_int(value: Any, field: str, label: str) -> int:
    return int(_non_negative_decimal(value, field, label))


def _date(value: Any, field: str, label: str) -> date | None:
    parsed = parse_date(value)
    if parsed is None and value is not None:
        logger.debug("Grant %s: unparsable %s %r", label, field, value)
    return parsed


def _grant_type(value: Any, label: str) -> GrantType:
    text = str(value or "").strip().upper()
    try:
        return GrantType(text)
    except ValueError:
        logger.debug("Grant %s: unknown grant type %r, using ISO", label, value)
        return GrantType.ISO


def _cadence(value: Any, label: str) -> VestingCadence:
    text = str(value or "").strip().lower()
    if text in _CADENCE_ALIASES:
        return _CADENCE_ALIASES[text]
    if value is not None:
        logger.debug("Grant %s: unknown vesting cadence %r, using monthly", label, value)
    return VestingCadence.MONTHLY


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)
