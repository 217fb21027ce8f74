"""Shared fixtures: fake clock, in-memory database, mocked collaborators, API client."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from volunteer_portal.database.engine import drop_db, get_session, init_db, make_engine
from volunteer_portal.main import app
from volunteer_portal.services.document_store import DocumentStore
from volunteer_portal.services.email_service import EmailService
from volunteer_portal.services.otp_store import OTPStore


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def otp_store(clock: FakeClock) -> OTPStore:
    return OTPStore(clock=clock)


@pytest.fixture
def email_service():
    """Mocked email service — never actually sends emails."""
    svc = EmailService()
    svc.send_otp = AsyncMock()
    svc.send_welcome = AsyncMock()
    svc.send_password_reset = AsyncMock()
    return svc


@pytest.fixture
def document_store():
    """Mocked document store returning a deterministic URL per category."""
    store = DocumentStore(cloud_name="test", upload_preset="test")
    counter = {"n": 0}

    async def _upload(data: bytes, category: str, resource_type: str = "auto") -> str:
        counter["n"] += 1
        return f"https://files.example.com/{category}/{counter['n']}"

    store.upload = AsyncMock(side_effect=_upload)
    return store


# ── In-memory test database ─────────────────────────────

@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = make_engine("sqlite+aiosqlite://", echo=False)
    await init_db(engine)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await drop_db(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ── API client ──────────────────────────────────────────

@pytest_asyncio.fixture
async def client(session_factory, otp_store, email_service, document_store):
    """HTTP client bound to the app with all collaborators swapped for test doubles."""

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _override_session
    app.state.otp_store = otp_store
    app.state.email_service = email_service
    app.state.document_store = document_store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
