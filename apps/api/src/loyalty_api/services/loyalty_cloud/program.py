"""Member profile, enrollment and program configuration calls."""

from __future__ import annotations

import re
from typing import Any, Mapping

from .gateway import LoyaltyCloudGateway, LoyaltyCloudService, ServiceResult, program_placeholders

_WHITESPACE = re.compile(r"\s+")

PROGRAM_CONFIG_QUERY = """
    SELECT Id, Name,
        (SELECT Id, Name FROM LoyaltyProgramCurrencies),
        (SELECT Id, Name, (SELECT Id, Name FROM LoyaltyTiers) FROM LoyaltyTierGroups)
    FROM LoyaltyProgram WHERE Name = '{program_name}' LIMIT 1
"""
JOURNAL_TYPES_QUERY = "SELECT Id, Name FROM JournalType"
JOURNAL_SUBTYPES_QUERY = "SELECT Id, Name FROM JournalSubType"


def _soql_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class LoyaltyProgramClient:
    def __init__(self, gateway: LoyaltyCloudGateway) -> None:
        self._gateway = gateway
        self._config = gateway.config

    async def get_member_profile(self, *, member_id: str | None, membership_number: str | None) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.GET_MEMBER_PROFILE,
            "GET",
            query_params={
                "memberId": member_id,
                "membershipNumber": membership_number,
                "programCurrencyName": self._config.non_qualifying_currency_name,
            },
            endpoint_processor=program_placeholders(self._config.program_name),
        )

    async def enroll_member(self, payload: Mapping[str, Any]) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.ENROLL_PROGRAM_MEMBERS,
            "POST",
            payload=dict(payload),
            endpoint_processor=program_placeholders(self._config.program_name),
        )

    async def query(self, soql: str) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.QUERY,
            "GET",
            query_params={"q": _WHITESPACE.sub(" ", soql).strip()},
        )

    async def get_program_config(self) -> ServiceResult:
        return await self.query(PROGRAM_CONFIG_QUERY.format(program_name=_soql_literal(self._config.program_name)))

    async def get_journal_types(self) -> ServiceResult:
        return await self.query(JOURNAL_TYPES_QUERY)

    async def get_journal_subtypes(self) -> ServiceResult:
        return await self.query(JOURNAL_SUBTYPES_QUERY)


__all__ = ["LoyaltyProgramClient"]
