"""Authenticated HTTP access to the Loyalty Cloud REST API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping
from urllib.parse import quote

import httpx
from loguru import logger

from loyalty_api.observability.tracing import provider_span, record_provider_status
from .config import LoyaltyCloudConfig

EndpointProcessor = Callable[[str], str]
TokenProvider = Callable[[], Awaitable[str | None]]

_BODY_METHODS = frozenset({"POST", "PATCH", "PUT"})


class LoyaltyCloudService(str, Enum):
    GET_TOKEN = "LoyaltyCloud_getToken"
    GET_VOUCHERS = "LoyaltyCloud_getVouchers"
    INVOKE_PROCESS_RULE = "LoyaltyCloud_invokeProcessRule"
    GET_MEMBER_PROFILE = "LoyaltyCloud_getMemberProfile"
    ENROLL_PROGRAM_MEMBERS = "LoyaltyCloud_enrollProgramMembers"
    TRANSACTION_HISTORY = "LoyaltyCloud_transactionHistory"
    TRANSACTION_LEDGER_SUMMARY = "LoyaltyCloud_transactionLedgerSummary"
    TRANSACTION_JOURNALS_EXECUTION = "LoyaltyCloud_transactionJournalsExecution"
    QUERY = "LoyaltyCloud_query"


# Paths are relative to `{endpoint}/services/data/v{version}`; dashed tokens are
# placeholders substituted by the caller's endpoint processor.
SERVICE_PATHS: Dict[LoyaltyCloudService, str] = {
    LoyaltyCloudService.GET_VOUCHERS: "connect/loyalty/programs/loyalty-program-name/members/membership-number/vouchers",
    LoyaltyCloudService.INVOKE_PROCESS_RULE: "connect/loyalty/programs/loyalty-program-name/program-processes/process-name",
    LoyaltyCloudService.GET_MEMBER_PROFILE: "connect/loyalty/programs/loyalty-program-name/members",
    LoyaltyCloudService.ENROLL_PROGRAM_MEMBERS: "loyalty-programs/loyalty-program-name/individual-member-enrollments",
    LoyaltyCloudService.TRANSACTION_HISTORY: "connect/loyalty/programs/loyalty-program-name/transaction-history",
    LoyaltyCloudService.TRANSACTION_LEDGER_SUMMARY: (
        "connect/loyalty/programs/loyalty-program-name/members/membership-number/transaction-ledger-summary"
    ),
    LoyaltyCloudService.TRANSACTION_JOURNALS_EXECUTION: "connect/realtime/loyalty/programs/loyalty-program-name",
    LoyaltyCloudService.QUERY: "query",
}


class ResponseParseError(ValueError):
    """Raised when a Loyalty Cloud response body is not well-formed JSON."""


@dataclass(frozen=True)
class ServiceResult:
    """Normalized envelope for one Loyalty Cloud round trip."""

    ok: bool
    text: str | None = None
    error_message: str | None = None
    status_code: int | None = None

    def json(self) -> Any:
        if self.text is None:
            raise ResponseParseError("Empty response body")
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise ResponseParseError(str(exc)) from exc


def program_placeholders(program_name: str, **values: str) -> EndpointProcessor:
    """Build an endpoint processor that fills the program name plus any extra placeholders."""

    replacements = {"loyalty-program-name": quote(program_name, safe="")}
    for placeholder, value in values.items():
        replacements[placeholder.replace("_", "-")] = quote(str(value), safe="")

    def _process(url: str) -> str:
        for placeholder, value in replacements.items():
            url = url.replace(placeholder, value)
        return url

    return _process


def _extract_error_message(response: httpx.Response) -> str:
    try:
        parsed = response.json()
    except ValueError:
        return response.text or response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(parsed, list) and parsed and isinstance(parsed[0], Mapping):
        parsed = parsed[0]
    if isinstance(parsed, Mapping):
        for key in ("message", "error_description", "error"):
            value = parsed.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


def handle_service_result(result: ServiceResult, operation: str) -> Dict[str, Any]:
    """Log a gateway result and fold it into a `{success, data, error}` summary."""

    if result.ok:
        logger.info("Loyalty Cloud operation succeeded", operation=operation)
        return {"success": True, "data": result.text, "error": None}

    message = result.error_message or "Unknown error"
    logger.error("Loyalty Cloud operation failed", operation=operation, error=message, status_code=result.status_code)
    return {
        "success": False,
        "data": None,
        "error": {"message": message, "statusCode": result.status_code or 500},
    }


class LoyaltyCloudGateway:
    """Issue requests against the provider using the cached bearer token."""

    def __init__(
        self,
        config: LoyaltyCloudConfig,
        *,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._token_provider = token_provider
        self._http_client = http_client

    @property
    def config(self) -> LoyaltyCloudConfig:
        return self._config

    def build_url(self, service: LoyaltyCloudService | str, endpoint_processor: EndpointProcessor | None = None) -> str:
        path = SERVICE_PATHS[LoyaltyCloudService(service)]
        url = f"{self._config.base_url}/{path}"
        if endpoint_processor is not None:
            url = endpoint_processor(url)
        return url

    async def call(
        self,
        service: LoyaltyCloudService | str,
        method: str,
        *,
        headers: Mapping[str, str] | None = None,
        payload: Any = None,
        query_params: Mapping[str, Any] | None = None,
        endpoint_processor: EndpointProcessor | None = None,
    ) -> ServiceResult:
        """Invoke a registered service; any transport or HTTP failure becomes a non-ok result."""

        method = method.upper()
        service_name = LoyaltyCloudService(service).value
        url = self.build_url(service, endpoint_processor)

        request_headers: Dict[str, str] = {"Content-Type": "application/json"}
        token = await self._token_provider() if self._token_provider else None
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        else:
            logger.error("Loyalty Cloud access token unavailable", service=service_name)
        request_headers.update(headers or {})

        content = None
        if payload is not None and method in _BODY_METHODS:
            content = json.dumps(payload, default=str)

        params = {key: str(value) for key, value in (query_params or {}).items() if value is not None}
        return await self._send(service_name, method, url, headers=request_headers, content=content, params=params)

    async def request_access_token(self) -> ServiceResult:
        """Exchange the configured integration user credentials for an access token."""

        form = {
            "grant_type": "password",
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "username": self._config.username,
            "password": self._config.full_password,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded; charset=UTF-8"}
        return await self._send(
            LoyaltyCloudService.GET_TOKEN.value,
            "POST",
            self._config.token_url,
            headers=headers,
            data=form,
        )

    async def _send(self, service_name: str, method: str, url: str, **kwargs: Any) -> ServiceResult:
        client = self._http_client or httpx.AsyncClient(timeout=self._config.timeout_seconds)
        owns_client = self._http_client is None
        with provider_span(service_name, method) as span:
            try:
                response = await client.request(method, url, timeout=self._config.timeout_seconds, **kwargs)
            except httpx.HTTPError as exc:
                logger.error("Loyalty Cloud request failed", service=service_name, method=method, error=str(exc))
                record_provider_status(span, None, ok=False)
                return ServiceResult(ok=False, error_message=str(exc) or exc.__class__.__name__)
            finally:
                if owns_client:
                    await client.aclose()
            record_provider_status(span, response.status_code, ok=response.is_success)

        if response.is_success:
            logger.debug("Loyalty Cloud request completed", service=service_name, status_code=response.status_code)
            return ServiceResult(ok=True, text=response.text, status_code=response.status_code)

        error_message = _extract_error_message(response)
        logger.warning(
            "Loyalty Cloud request rejected",
            service=service_name,
            method=method,
            status_code=response.status_code,
            error=error_message,
        )
        return ServiceResult(
            ok=False,
            text=response.text,
            error_message=error_message,
            status_code=response.status_code,
        )


__all__ = [
    "EndpointProcessor",
    "LoyaltyCloudGateway",
    "LoyaltyCloudService",
    "ResponseParseError",
    "SERVICE_PATHS",
    "ServiceResult",
    "TokenProvider",
    "handle_service_result",
    "program_placeholders",
]
