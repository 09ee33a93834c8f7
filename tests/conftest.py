"""Shared test fixtures for RetailHub."""

import pytest
from httpx import ASGITransport, AsyncClient


API_KEY = "test-admin-api-key"
SUPER_ADMIN_KEY = "test-super-admin-key"


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Create a test app with in-memory landlord and tenant databases."""
    monkeypatch.setenv("RETAILHUB_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("RETAILHUB_TENANT_DB_URL_TEMPLATE", "sqlite+aiosqlite://")
    monkeypatch.setenv("RETAILHUB_API_KEY", API_KEY)
    monkeypatch.setenv("RETAILHUB_SUPER_ADMIN_KEY", SUPER_ADMIN_KEY)
    monkeypatch.setenv("RETAILHUB_PUBLIC_PATH", str(tmp_path / "public"))
    monkeypatch.setenv("RETAILHUB_WILDCARD_SUBDOMAIN", "true")

    # Clear caches and singletons so new env vars take effect
    from retailhub.common.config import get_settings
    get_settings.cache_clear()

    from retailhub.deps import reset_singletons
    reset_singletons()

    from retailhub.app import create_app
    yield create_app()

    get_settings.cache_clear()
    reset_singletons()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from retailhub.deps import get_db, get_tenant_dbs
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await get_tenant_dbs().close()
    await db.close()


@pytest.fixture
def admin_headers():
    return {"X-RetailHub-Api-Key": API_KEY}


@pytest.fixture
def super_admin_headers():
    return {"X-RetailHub-Api-Key": SUPER_ADMIN_KEY}
