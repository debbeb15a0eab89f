"""Transaction history, ledger summary and journal execution calls."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from .gateway import LoyaltyCloudGateway, LoyaltyCloudService, ServiceResult, program_placeholders


class LoyaltyHistoryClient:
    def __init__(self, gateway: LoyaltyCloudGateway) -> None:
        self._gateway = gateway
        self._program_name = gateway.config.program_name

    async def get_transaction_history(self, membership_number: str, journal_type: str, *, page: int = 1) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.TRANSACTION_HISTORY,
            "POST",
            query_params={"page": page},
            payload={"membershipNumber": membership_number, "journalType": journal_type},
            endpoint_processor=program_placeholders(self._program_name),
        )

    async def get_ledger_summary(self, membership_number: str, **filters: Any) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.TRANSACTION_LEDGER_SUMMARY,
            "GET",
            query_params={"membershipNumber": membership_number, **filters},
            endpoint_processor=program_placeholders(self._program_name, membership_number=membership_number),
        )

    async def execute_transaction_journals(self, journals: Sequence[Mapping[str, Any]]) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.TRANSACTION_JOURNALS_EXECUTION,
            "POST",
            payload={"transactionJournals": [dict(journal) for journal in journals]},
            endpoint_processor=program_placeholders(self._program_name),
        )


__all__ = ["LoyaltyHistoryClient"]
