"""
Shared fixtures — a file-backed SQLite database per test plus the fakes
from tests.support wired into real services.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from lascentlo.api import Services, build_services, create_app
from lascentlo.auth import Registration
from lascentlo.catalog import Product, SqlCatalog
from lascentlo.checkout import CheckoutWorkflow, Customer, PaymentConfirmation
from lascentlo.db import create_database
from lascentlo.settings import Settings
from tests.support import FakeProcessor, RecordingNotifier, ok, rose_draft


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}",
        jwt_secret="test-secret",
        password_hash_rounds=1000,
        log_json=False,
    )


@pytest.fixture
async def database(settings):
    session_factory, engine = await create_database(settings.database_url)
    yield session_factory
    await engine.dispose()


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def catalog(database) -> SqlCatalog:
    return SqlCatalog(database)


@pytest.fixture
async def rose(catalog) -> Product:
    return await catalog.create(rose_draft())


@pytest.fixture
def services(settings, database, processor, notifier) -> Services:
    return build_services(settings, database, processor=processor, notifier=notifier)


@pytest.fixture
def workflow(services) -> CheckoutWorkflow:
    return services.checkout


@pytest.fixture
def confirmation(services) -> PaymentConfirmation:
    return services.confirmation


@pytest.fixture
async def customer(services) -> Customer:
    session = ok(
        await services.accounts.register(
            Registration(
                email="ana@lascentlo.com",
                password="s3cret-pass",
                first_name="Ana",
                last_name="Morel",
            )
        )
    )
    return Customer(id=session.user.id, email=session.user.email, first_name=session.user.first_name)


@pytest.fixture
async def client(services) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(services.settings, services=services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

