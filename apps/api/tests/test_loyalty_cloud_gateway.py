import json
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import TEST_TOKEN
from loyalty_api.services.loyalty_cloud import (
    LoyaltyCloudConfig,
    LoyaltyCloudGateway,
    LoyaltyCloudService,
    ResponseParseError,
    ServiceResult,
    handle_service_result,
    program_placeholders,
)


def test_config_derives_urls_and_password() -> None:
    config = LoyaltyCloudConfig(endpoint="https://loyalty.example", api_version="62.0", program_name="NTO", password="pw", secret_token="TOK")

    assert config.base_url == "https://loyalty.example/services/data/v62.0"
    assert config.token_url == "https://loyalty.example/services/oauth2/token"
    assert config.full_password == "pwTOK"


def test_build_url_substitutes_quoted_placeholders(loyalty_config) -> None:
    url = LoyaltyCloudGateway(loyalty_config).build_url(
        LoyaltyCloudService.INVOKE_PROCESS_RULE,
        program_placeholders("NTO Insider", process_name="Consume Voucher"),
    )

    assert url == (
        "https://loyalty.example/services/data/v62.0/connect/loyalty/programs/"
        "NTO%20Insider/program-processes/Consume%20Voucher"
    )


def test_service_result_json_raises_parse_error() -> None:
    assert ServiceResult(ok=True, text='{"a": 1}').json() == {"a": 1}
    with pytest.raises(ResponseParseError):
        ServiceResult(ok=True, text="<xml/>").json()
    with pytest.raises(ResponseParseError):
        ServiceResult(ok=True).json()


@pytest.mark.asyncio
async def test_call_sends_bearer_json_body_and_drops_empty_params(gateway, loyalty_cloud) -> None:
    loyalty_cloud.add("POST", "/transaction-history", json={"transactionJournals": []})

    result = await gateway.call(
        LoyaltyCloudService.TRANSACTION_HISTORY,
        "post",
        payload={"membershipNumber": "00012345"},
        query_params={"page": 1, "journalType": None},
        endpoint_processor=program_placeholders("NTO Insider"),
    )

    assert result.ok is True
    assert result.status_code == 200
    request = loyalty_cloud.requests[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == f"Bearer {TEST_TOKEN}"
    assert request.headers["Content-Type"] == "application/json"
    assert dict(request.url.params) == {"page": "1"}
    assert json.loads(request.content) == {"membershipNumber": "00012345"}


@pytest.mark.asyncio
async def test_get_requests_never_carry_a_body(gateway, loyalty_cloud) -> None:
    loyalty_cloud.add("GET", "/query", json={"records": []})

    await gateway.call(LoyaltyCloudService.QUERY, "GET", payload={"ignored": True}, query_params={"q": "SELECT Id FROM JournalType"})

    request = loyalty_cloud.requests[0]
    assert request.content == b""
    assert request.url.params["q"] == "SELECT Id FROM JournalType"


@pytest.mark.asyncio
async def test_missing_token_still_calls_provider(loyalty_config, loyalty_cloud, loyalty_http_client) -> None:
    async def no_token():
        return None

    gateway = LoyaltyCloudGateway(loyalty_config, token_provider=no_token, http_client=loyalty_http_client)
    loyalty_cloud.add("GET", "/query", status_code=401, json=[{"errorCode": "INVALID_SESSION_ID", "message": "Session expired or invalid"}])

    result = await gateway.call(LoyaltyCloudService.QUERY, "GET", query_params={"q": "SELECT Id FROM JournalType"})

    assert "Authorization" not in loyalty_cloud.requests[0].headers
    assert result.ok is False
    assert result.status_code == 401
    assert result.error_message == "Session expired or invalid"


@pytest.mark.asyncio
async def test_transport_errors_become_failed_results(gateway, loyalty_cloud) -> None:
    def _timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    loyalty_cloud.add_handler("GET", "/query", _timeout)

    result = await gateway.call(LoyaltyCloudService.QUERY, "GET")

    assert result.ok is False
    assert result.status_code is None
    assert result.error_message == "timed out"


@pytest.mark.asyncio
async def test_request_access_token_uses_password_grant_form(gateway, loyalty_cloud) -> None:
    loyalty_cloud.add("POST", "/services/oauth2/token", json={"access_token": "fresh", "token_type": "Bearer"})

    result = await gateway.request_access_token()

    assert result.ok is True
    request = loyalty_cloud.requests[0]
    assert str(request.url) == "https://loyalty.example/services/oauth2/token"
    assert request.headers["Content-Type"].startswith("application/x-www-form-urlencoded")
    assert "Authorization" not in request.headers
    form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
    assert form == {
        "grant_type": "password",
        "client_id": "client-id",
        "client_secret": "client-secret",
        "username": "integration@example.com",
        "password": "hunter2SECRET",
    }


def test_handle_service_result_summarizes_outcomes() -> None:
    assert handle_service_result(ServiceResult(ok=True, text="{}"), "getVouchers") == {
        "success": True,
        "data": "{}",
        "error": None,
    }
    assert handle_service_result(ServiceResult(ok=False, error_message="Bad", status_code=400), "getVouchers") == {
        "success": False,
        "data": None,
        "error": {"message": "Bad", "statusCode": 400},
    }
    assert handle_service_result(ServiceResult(ok=False), "getVouchers")["error"] == {
        "message": "Unknown error",
        "statusCode": 500,
    }
