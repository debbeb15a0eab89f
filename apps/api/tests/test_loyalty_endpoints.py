import pytest

from conftest import session_headers
from loyalty_fixtures import (
    JOURNAL_SUBTYPES_RESPONSE,
    JOURNAL_TYPES_RESPONSE,
    MEMBER_PROFILE_RESPONSE,
    PROGRAM_QUERY_RESPONSE,
)
from loyalty_api.core.settings import settings
from loyalty_api.models.loyalty_cloud import LOYALTY_CLOUD_STATE_KEY, LoyaltyCloudState
from loyalty_api.models.user import User
from loyalty_api.observability.vouchers import get_voucher_store
from loyalty_api.services.loyalty_cloud.mappers import map_program_config


@pytest.mark.asyncio
async def test_enroll_member_endpoint(api_client, loyalty_cloud) -> None:
    client, session_factory = api_client
    async with session_factory() as session:
        user = User(email="new@example.com", customer_number="00012345", first_name="Ada", last_name="Lovelace")
        session.add(user)
        await session.commit()
    loyalty_cloud.add("POST", "/individual-member-enrollments", json={"loyaltyProgramMemberId": "0lMxx0000000001"})
    loyalty_cloud.add("GET", "/members", json=MEMBER_PROFILE_RESPONSE)

    response = await client.post("/api/v1/loyalty/members/enroll", headers=session_headers(user))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Enrolled in loyalty program"
    assert body["data"]["membershipNumber"] == "00012345"


@pytest.mark.asyncio
async def test_enroll_member_requires_names(api_client, loyalty_cloud) -> None:
    client, session_factory = api_client
    async with session_factory() as session:
        user = User(email="nameless@example.com", customer_number="00054321")
        session.add(user)
        await session.commit()

    response = await client.post("/api/v1/loyalty/members/enroll", headers=session_headers(user))

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert loyalty_cloud.requests == []


@pytest.mark.asyncio
async def test_dashboard_for_member(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("GET", "/members", json=MEMBER_PROFILE_RESPONSE)
    loyalty_cloud.add("POST", "/transaction-history", json={"transactionJournals": []})
    loyalty_cloud.add("GET", "/transaction-ledger-summary", json={"totalPoints": 1650})
    loyalty_cloud.add("GET", "/vouchers", json={"vouchers": []})

    response = await client.get("/api/v1/loyalty/members/me", headers=session_headers(member))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["profile"]["totalPoints"] == 1650
    assert data["ledgerSummary"] == {"totalPoints": 1650}
    assert data["vouchers"] == {"voucherCount": 0, "vouchers": []}


@pytest.mark.asyncio
async def test_dashboard_profile_failure_is_bad_gateway(api_client, loyalty_cloud, member) -> None:
    client, _ = api_client
    loyalty_cloud.add("GET", "/members", status_code=500, json=[{"message": "internal details"}])

    response = await client.get("/api/v1/loyalty/members/me", headers=session_headers(member))

    assert response.status_code == 502
    assert response.json() == {"success": False, "message": "Member profile unavailable"}


@pytest.mark.asyncio
async def test_newsletter_signup_endpoint(api_client, loyalty_cloud, member) -> None:
    client, session_factory = api_client
    async with session_factory() as session:
        state = await session.get(LoyaltyCloudState, LOYALTY_CLOUD_STATE_KEY)
        state.program_config = map_program_config(
            PROGRAM_QUERY_RESPONSE, JOURNAL_TYPES_RESPONSE, JOURNAL_SUBTYPES_RESPONSE
        )
        await session.commit()
    loyalty_cloud.add("POST", "/connect/realtime/loyalty/programs/NTO Insider", json={"status": "ok"})

    response = await client.post("/api/v1/loyalty/newsletter-signup", headers=session_headers(member))

    assert response.status_code == 200
    assert response.json()["data"]["JournalSubTypeId"] == "0lSxx01"


@pytest.mark.asyncio
async def test_observability_snapshot_requires_operator_key(api_client, monkeypatch) -> None:
    client, _ = api_client
    monkeypatch.setattr(settings, "operator_api_key", "ops-key")
    get_voucher_store().record_failure("apply", "business_rule", "too small")

    denied = await client.get("/api/v1/loyalty/observability")
    assert denied.status_code == 401

    response = await client.get("/api/v1/loyalty/observability", headers={"X-API-Key": "ops-key"})
    assert response.status_code == 200
    body = response.json()
    assert body["totals"]["apply"] == {"business_rule": 1}
    assert body["events"]["last_failure_reason"] == "too small"
