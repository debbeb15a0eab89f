import sys
from pathlib import Path
from typing import Any, Callable, List, Tuple

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

import loyalty_api.models  # noqa: E402,F401
from loyalty_api.api.dependencies.loyalty import get_loyalty_config, get_loyalty_http_client  # noqa: E402
from loyalty_api.app import create_app  # noqa: E402
from loyalty_api.core.settings import settings  # noqa: E402
from loyalty_api.db.base import Base  # noqa: E402
from loyalty_api.db.session import get_session  # noqa: E402
from loyalty_api.models.loyalty_cloud import LOYALTY_CLOUD_STATE_KEY, LoyaltyCloudState  # noqa: E402
from loyalty_api.models.user import User  # noqa: E402
from loyalty_api.observability.vouchers import get_voucher_store  # noqa: E402
from loyalty_api.services.loyalty_cloud import LoyaltyCloudConfig, LoyaltyCloudGateway  # noqa: E402

TEST_TOKEN = "00Dxx0000000001!AQ4AQtest"
PROGRAM_NAME = "NTO Insider"

Route = Tuple[str, str, Callable[[httpx.Request], httpx.Response]]


class LoyaltyCloudStub:
    """Minimal stand-in for the provider, matching on path suffix; later routes win."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: List[Route] = []

    def add(
        self,
        method: str,
        path_fragment: str,
        *,
        status_code: int = 200,
        json: Any = None,
        text: str | None = None,
    ) -> None:
        def _respond(_: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json)

        self._routes.append((method.upper(), path_fragment, _respond))

    def add_handler(self, method: str, path_fragment: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._routes.append((method.upper(), path_fragment, handler))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, fragment, respond in reversed(self._routes):
            if request.method == method and request.url.path.endswith(fragment):
                return respond(request)
        return httpx.Response(404, json=[{"errorCode": "NOT_FOUND", "message": "No route configured"}])

    def requests_to(self, path_fragment: str) -> List[httpx.Request]:
        return [request for request in self.requests if path_fragment in request.url.path]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def voucher_payload(
    code: str = "V100",
    *,
    face_value: Any = 120,
    status: str = "Issued",
    expiration_date: str = "2099-12-31",
    definition_active: Any = True,
    voucher_id: str = "0kDxx0000000001",
) -> dict:
    return {
        "voucherId": voucher_id,
        "voucherCode": code,
        "voucherNumber": f"{code}-0001",
        "voucherDefinition": "Birthday Reward",
        "faceValue": face_value,
        "remainingValue": face_value,
        "redeemedValue": 0,
        "status": status,
        "type": "FixedValue",
        "effectiveDate": "2024-01-01",
        "expirationDate": expiration_date,
        "isVoucherDefinitionActive": definition_active,
        "isVoucherPartiallyRedeemable": False,
        "hasTimeBasedVoucherPeriod": False,
    }


@pytest.fixture(autouse=True)
def reset_voucher_store():
    get_voucher_store().reset()
    yield
    get_voucher_store().reset()


@pytest.fixture
def loyalty_config() -> LoyaltyCloudConfig:
    return LoyaltyCloudConfig(
        endpoint="https://loyalty.example",
        api_version="62.0",
        program_name=PROGRAM_NAME,
        client_id="client-id",
        client_secret="client-secret",
        username="integration@example.com",
        password="hunter2",
        secret_token="SECRET",
        default_website="www.example.com",
    )


@pytest_asyncio.fixture
async def loyalty_cloud():
    return LoyaltyCloudStub()


@pytest_asyncio.fixture
async def loyalty_http_client(loyalty_cloud):
    client = loyalty_cloud.client()
    try:
        yield client
    finally:
        await client.aclose()


@pytest_asyncio.fixture
async def gateway(loyalty_config, loyalty_http_client) -> LoyaltyCloudGateway:
    async def token_provider() -> str:
        return TEST_TOKEN

    return LoyaltyCloudGateway(loyalty_config, token_provider=token_provider, http_client=loyalty_http_client)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def member(session_factory) -> User:
    async with session_factory() as session:
        user = User(
            email="member@example.com",
            customer_number="00012345",
            first_name="Ada",
            last_name="Lovelace",
            phone_mobile="+15550100",
            loyalty_member_id="0lMxx0000000001",
        )
        session.add(user)
        await session.commit()
    return user


@pytest_asyncio.fixture
async def app_with_db(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "tracing_enabled", False)
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(app_with_db, loyalty_config, loyalty_http_client):
    app, session_factory = app_with_db

    async with session_factory() as session:
        session.add(LoyaltyCloudState(key=LOYALTY_CLOUD_STATE_KEY, access_token=TEST_TOKEN))
        await session.commit()

    app.dependency_overrides[get_loyalty_config] = lambda: loyalty_config
    app.dependency_overrides[get_loyalty_http_client] = lambda: loyalty_http_client

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client, session_factory


def session_headers(user: User) -> dict[str, str]:
    return {"X-Session-User": str(user.id)}
