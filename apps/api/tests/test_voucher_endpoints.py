import pytest

from conftest import session_headers, voucher_payload
from loyalty_api.services.vouchers import VoucherMessages

VOUCHERS_PATH = "/vouchers"
ISSUE_PATH = "/program-processes/Issue Voucher"


async def _add_item(client, member, price: str = "100.00") -> None:
    response = await client.post(
        "/api/v1/checkout/basket/items",
        json={"productId": "SKU-1", "productTitle": "Trail Runner", "unitPrice": price},
        headers=session_headers(member),
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_validate_requires_session(api_client) -> None:
    client, _ = api_client

    response = await client.get("/api/v1/vouchers/validate", params={"voucherCode": "V100"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_validate_defaults_to_session_membership_number(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("GET", VOUCHERS_PATH, json={"vouchers": [voucher_payload("V100")]})

    response = await client.get(
        "/api/v1/vouchers/validate",
        params={"voucherCode": "V100"},
        headers=session_headers(member),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == VoucherMessages.VALID
    assert body["data"]["voucherCode"] == "V100"
    assert body["data"]["faceValue"] == 120.0

    request = loyalty_cloud.requests_to(VOUCHERS_PATH)[0]
    assert request.url.params["membershipNumber"] == "00012345"
    assert request.headers["Authorization"].startswith("Bearer ")


@pytest.mark.asyncio
async def test_validate_maps_upstream_failure_to_bad_request(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("GET", VOUCHERS_PATH, status_code=503, text="maintenance")

    response = await client.get(
        "/api/v1/vouchers/validate",
        params={"voucherCode": "V100"},
        headers=session_headers(member),
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": VoucherMessages.RETRIEVAL_FAILED}


@pytest.mark.asyncio
async def test_apply_and_rollback_round_trip(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("GET", VOUCHERS_PATH, json={"vouchers": [voucher_payload("V100", face_value=120)]})
    await _add_item(client, member)

    applied = await client.post(
        "/api/v1/vouchers/apply",
        json={"voucherCode": "V100"},
        headers=session_headers(member),
    )
    assert applied.status_code == 200
    assert applied.json()["data"]["redeemedAmount"] == {"value": 100.0, "currency": "USD"}

    basket = (await client.get("/api/v1/checkout/basket", headers=session_headers(member))).json()
    assert basket["isVoucherApplied"] is True
    assert basket["paymentInstruments"][0]["voucherCode"] == "V100"

    removed = await client.post("/api/v1/vouchers/rollback", headers=session_headers(member))
    assert removed.status_code == 200
    assert removed.json()["message"] == VoucherMessages.REMOVED

    again = await client.post("/api/v1/vouchers/rollback", headers=session_headers(member))
    assert again.status_code == 400
    assert again.json()["message"] == VoucherMessages.NOT_APPLIED


@pytest.mark.asyncio
async def test_apply_rejects_voucher_not_exceeding_total(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("GET", VOUCHERS_PATH, json={"vouchers": [voucher_payload("V100", face_value=120)]})
    await _add_item(client, member, price="150.00")

    response = await client.post(
        "/api/v1/vouchers/apply",
        json={"voucherCode": "V100"},
        headers=session_headers(member),
    )

    assert response.status_code == 400
    assert response.json()["message"] == VoucherMessages.INSUFFICIENT_VALUE


@pytest.mark.asyncio
async def test_apply_without_basket(api_client, member) -> None:
    client, _ = api_client

    response = await client.post(
        "/api/v1/vouchers/apply",
        json={"voucherCode": "V100"},
        headers=session_headers(member),
    )

    assert response.status_code == 400
    assert response.json()["message"] == VoucherMessages.NO_BASKET


@pytest.mark.asyncio
async def test_redeem_points_issues_voucher(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("POST", ISSUE_PATH, json={"status": True})

    response = await client.post(
        "/api/v1/vouchers/redeem",
        json={"pointsToRedeem": 1500},
        headers=session_headers(member),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Voucher generated successfully"
    assert body["data"]["voucherValue"] == 15
    assert body["data"]["voucherCode"].startswith("VOUCHER")


@pytest.mark.asyncio
async def test_redeem_points_below_minimum(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client

    response = await client.post(
        "/api/v1/vouchers/redeem",
        json={"pointsToRedeem": 500},
        headers=session_headers(member),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Minimum 1000 points required for voucher redemption"
    assert loyalty_cloud.requests_to(ISSUE_PATH) == []


@pytest.mark.asyncio
async def test_redeem_points_hides_provider_error(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("POST", ISSUE_PATH, status_code=500, json=[{"message": "FIELD_CUSTOM_VALIDATION_EXCEPTION"}])

    response = await client.post(
        "/api/v1/vouchers/redeem",
        json={"pointsToRedeem": 1500},
        headers=session_headers(member),
    )

    assert response.status_code == 502
    assert response.json() == {"success": False, "message": "Voucher redemption failed"}


@pytest.mark.asyncio
async def test_list_vouchers(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add(
        "GET",
        VOUCHERS_PATH,
        json={"voucherCount": 1, "vouchers": [voucher_payload("V100", status="Redeemed")]},
    )

    response = await client.get("/api/v1/vouchers", headers=session_headers(member))

    assert response.status_code == 200
    vouchers = response.json()["data"]["vouchers"]
    assert vouchers[0]["statusClass"] == "badge-secondary"
    assert vouchers[0]["currency"] == "USD"


@pytest.mark.asyncio
async def test_apply_accepts_code_with_surrounding_whitespace(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("GET", VOUCHERS_PATH, json={"vouchers": [voucher_payload("V100", face_value=120)]})
    await _add_item(client, member)

    response = await client.post(
        "/api/v1/vouchers/apply",
        json={"voucherCode": " V100 "},
        headers=session_headers(member),
    )

    assert response.status_code == 200
    assert response.json()["data"]["voucherCode"] == "V100"
    basket = (await client.get("/api/v1/checkout/basket", headers=session_headers(member))).json()
    assert basket["paymentInstruments"][0]["voucherCode"] == "V100"
