"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from typing import Any
from urllib.parse import urlencode

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import telco_gateway.calls.models  # noqa: F401
import telco_gateway.messaging.models  # noqa: F401
from telco_gateway.calls.models import AssignedNumber, User
from telco_gateway.main import create_app
from telco_gateway.shared.database import Base, get_db_session
from telco_gateway.telephony import signing
from telco_gateway.telephony.adapters.mock import MockAdapter
from telco_gateway.telephony.config import ProviderType, TelephonyConfig
from telco_gateway.telephony.dispatch import SmsDispatcher
from telco_gateway.telephony.factory import (
    get_sms_dispatcher,
    get_telephony_config,
    get_voice_provider,
)
from telco_gateway.telephony.registry import ProviderRegistry

SIGNING_SECRET = "test-webhook-secret"
PLATFORM_NUMBER = "+15550001111"
FORWARDING_NUMBER = "+15550002222"
DESTINATION = "+15550003333"


@pytest.fixture
def telephony_config() -> TelephonyConfig:
    return TelephonyConfig(
        sms_providers=[ProviderType.MOCK],
        voice_provider=ProviderType.MOCK,
        twilio_account_sid="AC_TEST_ACCOUNT_SID",
        twilio_auth_token="test_auth_token_12345",
        twilio_from_number="+15550000000",
        twilio_messaging_service_sid="",
        twilio_sms_status_callback_url="",
        telnyx_api_key="KEY_TEST",
        telnyx_messaging_profile_id="",
        telnyx_from_number="+15550009999",
        webhook_base_url="https://gw.example.com",
        voice_status_callback_url="",
        webhook_signing_secret=SIGNING_SECRET,
        webhook_tolerance_seconds=300,
        verify_webhook_signatures=True,
    )


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[Any, None]:
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: Any) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def alias_user(db_session: AsyncSession) -> User:
    """User with a verified forwarding phone and two platform numbers."""
    user = User(forward_phone_number=FORWARDING_NUMBER)
    db_session.add(user)
    await db_session.flush()
    db_session.add(AssignedNumber(user_id=user.id, e164=PLATFORM_NUMBER))
    db_session.add(AssignedNumber(user_id=user.id, e164="+15550004444"))
    await db_session.commit()
    return user


def signed_form(
    data: dict[str, str],
    secret: str = SIGNING_SECRET,
    timestamp: int | None = None,
) -> tuple[str, dict[str, str]]:
    """Encode `data` as a form body and sign it like a carrier would."""
    body = urlencode(data)
    ts = signing.now_ms() if timestamp is None else timestamp
    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "X-Signature": signing.sign(secret, ts, body),
        "X-Signature-Timestamp": str(ts),
    }
    return body, headers


@pytest.fixture
def sign_form():
    return signed_form


@pytest.fixture
def gateway_app(
    db_session: AsyncSession,
    telephony_config: TelephonyConfig,
    mock_adapter: MockAdapter,
) -> Generator[FastAPI, None, None]:
    """Application with DB, carrier config and carriers overridden."""
    app = create_app()

    async def _override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = _override_get_db_session
    app.dependency_overrides[get_telephony_config] = lambda: telephony_config
    app.dependency_overrides[get_voice_provider] = lambda: mock_adapter
    app.dependency_overrides[get_sms_dispatcher] = lambda: SmsDispatcher(
        ProviderRegistry([mock_adapter])
    )
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(gateway_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=gateway_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
