"""Program membership features layered on the Loyalty Cloud gateway."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.models.user import User
from loyalty_api.observability.vouchers import VoucherObservabilityStore, get_voucher_store
from loyalty_api.services.loyalty_cloud import (
    EnrollmentError,
    LoyaltyCloudError,
    LoyaltyCloudGateway,
    LoyaltyCloudStateStore,
    LoyaltyHistoryClient,
    LoyaltyProgramClient,
    LoyaltyVoucherClient,
    MemberNotEnrolledError,
    ResponseParseError,
    ServiceResult,
    VoucherIssuanceError,
)
from loyalty_api.services.loyalty_cloud.mappers import map_member_profile, map_vouchers

ACCRUAL_JOURNAL_TYPE = "Accrual"
NEWSLETTER_JOURNAL_SUBTYPE = "Newsletter Signup"
FALLBACK_PHONE = "0000000000"
FALLBACK_WEBSITE = "www.test.com"

Clock = Callable[[], datetime]


def _parse(result: ServiceResult, operation: str) -> Any:
    try:
        return result.json()
    except ResponseParseError as exc:
        raise LoyaltyCloudError(f"Unreadable {operation} response", status_code=502, detail=str(exc)) from exc


def _upstream_error(error_cls: type[LoyaltyCloudError], message: str, result: ServiceResult) -> LoyaltyCloudError:
    # provider text stays in `detail` for logs; clients only see `message`
    return error_cls(message, status_code=502, detail=result.error_message or result.text)


class LoyaltyMemberService:
    """Enrollment, profile, dashboard, voucher issuance and newsletter accrual."""

    def __init__(
        self,
        db_session: AsyncSession,
        gateway: LoyaltyCloudGateway,
        *,
        clock: Clock | None = None,
        observability: VoucherObservabilityStore | None = None,
    ) -> None:
        self._db = db_session
        self._config = gateway.config
        self._program = LoyaltyProgramClient(gateway)
        self._history = LoyaltyHistoryClient(gateway)
        self._vouchers = LoyaltyVoucherClient(gateway)
        self._state = LoyaltyCloudStateStore(db_session)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._observability = observability or get_voucher_store()

    def build_enrollment_payload(self, user: User) -> Dict[str, Any]:
        first_name = (user.first_name or "").strip()
        last_name = (user.last_name or "").strip()
        if not first_name or not last_name:
            logger.error(
                "Enrollment payload validation failed",
                first_name_present=bool(first_name),
                last_name_present=bool(last_name),
            )
            raise EnrollmentError("First name and last name are required to enroll a loyalty member", status_code=400)

        payload = {
            "enrollmentDate": self._clock().isoformat(),
            "membershipNumber": user.customer_number or "",
            "associatedAccountDetails": {
                "name": f"{first_name} {last_name}".strip(),
                "phone": user.phone_mobile or user.phone_home or FALLBACK_PHONE,
                "website": self._config.default_website or FALLBACK_WEBSITE,
                "allowDuplicateRecords": "false",
            },
            "memberStatus": "Active",
            "createTransactionJournals": "true",
        }
        logger.debug("Enrollment payload constructed", membership_number=payload["membershipNumber"])
        return payload

    async def enroll(self, user: User) -> Dict[str, Any]:
        payload = self.build_enrollment_payload(user)
        result = await self._program.enroll_member(payload)
        if not result.ok:
            raise _upstream_error(EnrollmentError, "Enrollment failed", result)

        body = _parse(result, "enrollment")
        member_id = body.get("loyaltyProgramMemberId") if isinstance(body, dict) else None
        if not member_id:
            raise EnrollmentError("Enrollment response did not include a member id", status_code=502)

        user.loyalty_member_id = member_id
        await self._db.commit()
        logger.info("Loyalty member enrolled", user_id=str(user.id), member_id=member_id)
        return await self.get_profile(user)

    async def get_profile(self, user: User) -> Dict[str, Any]:
        if not user.loyalty_member_id:
            raise MemberNotEnrolledError("Customer not enrolled in loyalty program", status_code=400)

        result = await self._program.get_member_profile(
            member_id=user.loyalty_member_id,
            membership_number=user.customer_number,
        )
        if not result.ok:
            raise _upstream_error(LoyaltyCloudError, "Member profile unavailable", result)
        return map_member_profile(_parse(result, "member profile"), self._config)

    async def list_vouchers(self, user: User, *, currency: str | None = None) -> Dict[str, Any]:
        if not user.customer_number:
            raise MemberNotEnrolledError("Customer has no membership number", status_code=400)

        result = await self._vouchers.get_vouchers(user.customer_number)
        if not result.ok:
            raise _upstream_error(LoyaltyCloudError, "Vouchers unavailable", result)
        return map_vouchers(_parse(result, "voucher list"), currency=currency or self._config.default_currency)

    async def get_dashboard(self, user: User, *, currency: str | None = None) -> Dict[str, Any]:
        """Profile is required; history, ledger and vouchers each fall back to empty."""

        profile = await self.get_profile(user)
        membership_number = user.customer_number or ""

        history: List[Any] = []
        ledger: Dict[str, Any] = {}
        vouchers: Dict[str, Any] = {"voucherCount": 0, "vouchers": []}

        try:
            result = await self._history.get_transaction_history(membership_number, ACCRUAL_JOURNAL_TYPE)
            if result.ok:
                body = _parse(result, "transaction history")
                history = list(body.get("transactionJournals") or []) if isinstance(body, dict) else []
        except LoyaltyCloudError as exc:
            logger.warning("Transaction history unavailable", error=str(exc))

        try:
            result = await self._history.get_ledger_summary(membership_number)
            if result.ok:
                body = _parse(result, "ledger summary")
                ledger = body if isinstance(body, dict) else {}
        except LoyaltyCloudError as exc:
            logger.warning("Ledger summary unavailable", error=str(exc))

        try:
            vouchers = await self.list_vouchers(user, currency=currency)
        except LoyaltyCloudError as exc:
            logger.warning("Vouchers unavailable for dashboard", error=str(exc))

        return {
            "profile": profile,
            "transactionHistory": history,
            "ledgerSummary": ledger,
            "vouchers": vouchers,
        }

    async def issue_voucher_from_points(self, user: User, points_to_redeem: int | None) -> Dict[str, Any]:
        try:
            voucher = await self._issue_voucher(user, points_to_redeem)
        except LoyaltyCloudError as exc:
            outcome = "rejected" if exc.status_code == 400 else "upstream"
            self._observability.record_failure("issue", outcome, str(exc))
            raise
        self._observability.record_success("issue")
        return voucher

    async def _issue_voucher(self, user: User, points_to_redeem: int | None) -> Dict[str, Any]:
        minimum = self._config.voucher_min_points
        if not points_to_redeem or points_to_redeem < minimum:
            raise VoucherIssuanceError(f"Minimum {minimum} points required for voucher redemption", status_code=400)
        if not user.loyalty_member_id:
            raise MemberNotEnrolledError("Customer not enrolled in loyalty program", status_code=400)

        now = self._clock()
        voucher_value = points_to_redeem // self._config.points_per_currency_unit
        voucher_code = f"VOUCHER{str(int(now.timestamp() * 1000))[-6:]}"
        expiration_date = (now + timedelta(days=self._config.voucher_validity_days)).date().isoformat()

        result = await self._vouchers.issue_voucher(
            member_id=user.loyalty_member_id,
            voucher_code=voucher_code,
            face_value=voucher_value,
            expiration_date=expiration_date,
        )
        if not result.ok:
            logger.error("Voucher issuance failed", member_id=user.loyalty_member_id, error=result.error_message)
            raise _upstream_error(VoucherIssuanceError, "Voucher redemption failed", result)

        logger.info("Voucher issued from points", member_id=user.loyalty_member_id, voucher_code=voucher_code)
        return {
            "voucherCode": voucher_code,
            "voucherValue": voucher_value,
            "expirationDate": expiration_date,
            "pointsRedeemed": points_to_redeem,
        }

    async def record_newsletter_signup(self, user: User) -> Dict[str, Any]:
        if not user.loyalty_member_id:
            raise MemberNotEnrolledError("Customer not enrolled in loyalty program", status_code=400)

        journal = {
            "ActivityDate": self._clock().isoformat(),
            "JournalTypeId": await self._state.find_id_by_name("JournalType", ACCRUAL_JOURNAL_TYPE),
            "JournalSubTypeId": await self._state.find_id_by_name("JournalSubType", NEWSLETTER_JOURNAL_SUBTYPE),
            "MemberId": user.loyalty_member_id,
            "Status": "Pending",
        }
        result = await self._history.execute_transaction_journals([journal])
        if not result.ok:
            raise _upstream_error(LoyaltyCloudError, "Transaction journal execution failed", result)
        logger.info("Newsletter signup journal recorded", member_id=user.loyalty_member_id)
        return journal


__all__ = ["LoyaltyMemberService"]
