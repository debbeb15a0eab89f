"""Voucher listing, issuance and consumption calls."""

from __future__ import annotations

from decimal import Decimal

from .gateway import LoyaltyCloudGateway, LoyaltyCloudService, ServiceResult, program_placeholders

ISSUE_VOUCHER_PROCESS = "Issue Voucher"
CONSUME_VOUCHER_PROCESS = "Consume Voucher"


class LoyaltyVoucherClient:
    def __init__(self, gateway: LoyaltyCloudGateway) -> None:
        self._gateway = gateway
        self._program_name = gateway.config.program_name

    async def get_vouchers(self, membership_number: str) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.GET_VOUCHERS,
            "GET",
            query_params={"membershipNumber": membership_number},
            endpoint_processor=program_placeholders(self._program_name, membership_number=membership_number),
        )

    async def issue_voucher(
        self,
        *,
        member_id: str,
        voucher_code: str,
        face_value: Decimal | int,
        expiration_date: str,
    ) -> ServiceResult:
        payload = {
            "processParameters": [
                {
                    "MemberId": member_id,
                    "VoucherCode": voucher_code,
                    "VoucherFaceValue": face_value,
                    "VoucherExpirationDate": expiration_date,
                }
            ]
        }
        return await self._invoke_process(ISSUE_VOUCHER_PROCESS, payload)

    async def consume_voucher(self, voucher_id: str, membership_number: str) -> ServiceResult:
        payload = {"processParameters": [{"MembershipNumber": membership_number, "VoucherId": voucher_id}]}
        return await self._invoke_process(CONSUME_VOUCHER_PROCESS, payload)

    async def _invoke_process(self, process_name: str, payload: dict) -> ServiceResult:
        return await self._gateway.call(
            LoyaltyCloudService.INVOKE_PROCESS_RULE,
            "POST",
            payload=payload,
            endpoint_processor=program_placeholders(self._program_name, process_name=process_name),
        )


__all__ = ["CONSUME_VOUCHER_PROCESS", "ISSUE_VOUCHER_PROCESS", "LoyaltyVoucherClient"]
