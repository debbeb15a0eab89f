import pytest

from conftest import session_headers


@pytest.mark.asyncio
async def test_session_resolves_by_user_id(api_client, member) -> None:
    client, _ = api_client

    response = await client.get("/api/v1/checkout/basket", headers=session_headers(member))

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_session_resolves_by_customer_number(api_client, member) -> None:
    client, _ = api_client

    response = await client.get("/api/v1/checkout/basket", headers={"X-Session-User": " 00012345 "})

    assert response.status_code == 200
    assert response.json()["status"] == "open"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers, expected",
    [
        ({}, 401),
        ({"X-Session-User": "   "}, 401),
        ({"X-Session-User": "99999999"}, 404),
        ({"X-Session-User": "7f6c1c1e-0000-4000-8000-000000000000"}, 404),
    ],
)
async def test_session_rejects_unknown_customers(api_client, member, headers, expected) -> None:
    client, _ = api_client

    response = await client.get("/api/v1/checkout/basket", headers=headers)

    assert response.status_code == expected
