"""Translate raw Loyalty Cloud payloads into storefront-facing shapes."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from loguru import logger

from .config import LoyaltyCloudConfig

VOUCHER_STATUS_CLASSES: Dict[str, str] = {
    "Issued": "badge-success",
    "Redeemed": "badge-secondary",
    "Expired": "badge-danger",
    "Cancelled": "badge-warning",
}
DEFAULT_STATUS_CLASS = "badge-info"


def parse_expiration(value: Any) -> datetime | None:
    """Parse provider dates (`YYYY-MM-DD` or ISO timestamps) into aware datetimes."""

    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("Unparseable voucher expiration date", value=value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(expiration_date: Any, *, now: datetime | None = None) -> bool:
    expires_at = parse_expiration(expiration_date)
    if expires_at is None:
        return False
    reference = now or datetime.now(timezone.utc)
    return reference > expires_at


def _records(payload: Mapping[str, Any] | None, key: str | None = None) -> List[Mapping[str, Any]]:
    source: Any = payload
    if key is not None:
        source = payload.get(key) if isinstance(payload, Mapping) else None
    if not isinstance(source, Mapping):
        return []
    records = source.get("records")
    return [record for record in records if isinstance(record, Mapping)] if isinstance(records, list) else []


def _record_type(record: Mapping[str, Any]) -> str | None:
    attributes = record.get("attributes")
    return attributes.get("type") if isinstance(attributes, Mapping) else None


def _simple(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {"id": record.get("Id"), "name": record.get("Name"), "type": _record_type(record)}


def map_program_config(
    config_response: Mapping[str, Any] | None,
    journal_types_response: Mapping[str, Any] | None,
    journal_subtypes_response: Mapping[str, Any] | None,
) -> Dict[str, Any]:
    """Flatten the SOQL program query plus journal lookups into one cacheable document."""

    programs = _records(config_response)
    if not programs:
        return {
            "id": None,
            "loyaltyProgramCurrencies": [],
            "loyaltyTierGroups": [],
            "journalTypes": [],
            "journalSubtypes": [],
        }

    program = programs[0]
    tier_groups = []
    for group in _records(program, "LoyaltyTierGroups"):
        entry = _simple(group)
        entry["loyaltyTiers"] = [_simple(tier) for tier in _records(group, "LoyaltyTiers")]
        tier_groups.append(entry)

    return {
        **_simple(program),
        "loyaltyProgramCurrencies": [_simple(currency) for currency in _records(program, "LoyaltyProgramCurrencies")],
        "loyaltyTierGroups": tier_groups,
        "journalTypes": [_simple(record) for record in _records(journal_types_response)],
        "journalSubtypes": [_simple(record) for record in _records(journal_subtypes_response)],
    }


def _iter_tiers(program_config: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    for group in program_config.get("loyaltyTierGroups") or []:
        for tier in group.get("loyaltyTiers") or []:
            yield tier


def objects_by_type(program_config: Mapping[str, Any] | None, object_type: str) -> List[Mapping[str, Any]]:
    if not program_config:
        return []
    kind = object_type.lower()
    if kind == "loyaltyprogram":
        return [{"id": program_config.get("id"), "name": program_config.get("name"), "type": program_config.get("type")}]
    if kind == "loyaltytier":
        return list(_iter_tiers(program_config))
    key = {
        "loyaltyprogramcurrency": "loyaltyProgramCurrencies",
        "loyaltytiergroup": "loyaltyTierGroups",
        "journaltype": "journalTypes",
        "journalsubtype": "journalSubtypes",
    }.get(kind)
    if key is None:
        logger.warning("Unknown loyalty object type", object_type=object_type)
        return []
    return list(program_config.get(key) or [])


def find_id_by_name(program_config: Mapping[str, Any] | None, object_type: str, name: str) -> str | None:
    """Case-insensitive lookup of a cached program object id by its name."""

    if not program_config:
        logger.warning("Loyalty program configuration not synced")
        return None
    wanted = name.lower()
    for item in objects_by_type(program_config, object_type):
        item_name = item.get("name")
        if isinstance(item_name, str) and item_name.lower() == wanted:
            return item.get("id")
    logger.warning("Loyalty object not found", object_type=object_type, name=name)
    return None


def map_member_profile(body: Mapping[str, Any], config: LoyaltyCloudConfig) -> Dict[str, Any]:
    qualifying = 0
    non_qualifying = 0
    for currency in body.get("memberCurrencies") or []:
        currency_name = currency.get("loyaltyMemberCurrencyName")
        if currency_name == config.qualifying_currency_name:
            qualifying = currency.get("pointsBalance") or 0
        elif currency_name == config.non_qualifying_currency_name:
            non_qualifying = currency.get("pointsBalance") or 0

    tiers = body.get("memberTiers") or []
    return {
        "id": body.get("loyaltyProgramMemberId"),
        "programName": body.get("loyaltyProgramName"),
        "membershipNumber": body.get("membershipNumber"),
        "memberStatus": body.get("memberStatus"),
        "qualifyingPoints": qualifying,
        "nonQualifyingPoints": non_qualifying,
        "totalPoints": qualifying + non_qualifying,
        "tier": tiers[0].get("loyaltyMemberTierName") if tiers else "",
        "enrollmentDate": body.get("enrollmentDate"),
        "memberType": body.get("memberType"),
        "associatedAccount": body.get("associatedAccount"),
        "canReceivePromotions": body.get("canReceivePromotions"),
        "canReceivePartnerPromotions": body.get("canReceivePartnerPromotions"),
    }


def map_vouchers(body: Mapping[str, Any] | None, *, currency: str) -> Dict[str, Any]:
    vouchers = (body or {}).get("vouchers") or []
    if not vouchers:
        return {"voucherCount": 0, "vouchers": []}

    mapped = [
        {
            "voucherId": voucher.get("voucherId"),
            "voucherCode": voucher.get("voucherCode"),
            "voucherNumber": voucher.get("voucherNumber"),
            "voucherDefinition": voucher.get("voucherDefinition"),
            "faceValue": voucher.get("faceValue"),
            "remainingValue": voucher.get("remainingValue"),
            "redeemedValue": voucher.get("redeemedValue"),
            "status": voucher.get("status"),
            "statusClass": VOUCHER_STATUS_CLASSES.get(voucher.get("status"), DEFAULT_STATUS_CLASS),
            "type": voucher.get("type"),
            "effectiveDate": voucher.get("effectiveDate"),
            "expirationDate": voucher.get("expirationDate"),
            "isExpired": is_expired(voucher.get("expirationDate")),
            "isVoucherDefinitionActive": voucher.get("isVoucherDefinitionActive"),
            "isVoucherPartiallyRedeemable": voucher.get("isVoucherPartiallyRedeemable"),
            "hasTimeBasedVoucherPeriod": voucher.get("hasTimeBasedVoucherPeriod"),
            "currency": currency,
        }
        for voucher in vouchers
        if isinstance(voucher, Mapping)
    ]
    return {"voucherCount": body.get("voucherCount") or len(mapped), "vouchers": mapped}


__all__ = [
    "find_id_by_name",
    "is_expired",
    "map_member_profile",
    "map_program_config",
    "map_vouchers",
    "objects_by_type",
    "parse_expiration",
]
