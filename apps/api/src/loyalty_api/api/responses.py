"""`{success, message, data?}` envelope shared by the voucher and loyalty endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from loyalty_api.services.loyalty_cloud import LoyaltyCloudError
from loyalty_api.services.vouchers import Outcome, VoucherErrorKind

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ActionResponse(BaseModel):
    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field("", description="Customer-facing result message")
    data: Any | None = Field(default=None, description="Operation payload")


def ok(message: str = "", data: Any | None = None) -> ActionResponse:
    return ActionResponse(success=True, message=message, data=data)


def failure(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    body = ActionResponse(success=False, message=message).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def from_outcome(outcome: Outcome, data: Any | None = None) -> ActionResponse | JSONResponse:
    """Error outcomes become 400, except `UNEXPECTED` which is a 500."""

    if outcome.error:
        code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR
            if outcome.kind == VoucherErrorKind.UNEXPECTED
            else status.HTTP_400_BAD_REQUEST
        )
        return failure(outcome.message, code)
    return ok(outcome.message, data)


def from_loyalty_error(exc: LoyaltyCloudError) -> JSONResponse:
    code = exc.status_code if exc.status_code and 400 <= exc.status_code < 600 else status.HTTP_502_BAD_GATEWAY
    return failure(str(exc), code)


__all__ = ["ActionResponse", "GENERIC_ERROR_MESSAGE", "failure", "from_loyalty_error", "from_outcome", "ok"]
