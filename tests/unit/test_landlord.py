"""Tests for landlord tenant and package services, config and security helpers."""

import asyncio

import bcrypt
import pytest
from sqlalchemy.exc import IntegrityError

from retailhub.common.config import RetailHubSettings
from retailhub.common.database import DatabaseManager, TenantDatabases
from retailhub.common.exceptions import TenantExistsError
from retailhub.common.models import LandlordBase
from retailhub.common.security import hash_password
from retailhub.landlord.schemas import PackageResponse
from retailhub.landlord.service import PackageService, TenantService, decode_json_list


@pytest.fixture
async def db():
    manager = DatabaseManager("sqlite+aiosqlite://", LandlordBase)
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


class TestTenantService:
    async def test_create_adds_domain(self, db):
        svc = TenantService()
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, "acme", "example.com")
            assert tenant.id == "acme"
            assert await svc.get_domains(session, "acme") == ["acme.example.com"]

    async def test_duplicate_rejected(self, db):
        svc = TenantService()
        async with db.get_session() as session:
            await svc.create_tenant(session, "acme")
        with pytest.raises(TenantExistsError):
            async with db.get_session() as session:
                await svc.create_tenant(session, "acme")

    async def test_update_ignores_unknown_fields(self, db):
        svc = TenantService()
        async with db.get_session() as session:
            await svc.create_tenant(session, "acme")
            tenant = await svc.update_tenant(session, "acme", modules="ecommerce", id="other")
        assert tenant.modules == "ecommerce"
        assert tenant.id == "acme"

    async def test_update_unknown_tenant(self, db):
        async with db.get_session() as session:
            assert await TenantService().update_tenant(session, "ghost", modules="x") is None

    async def test_payments(self, db):
        svc = TenantService()
        async with db.get_session() as session:
            await svc.create_tenant(session, "acme")
            await svc.record_payment(session, "acme", 29.99, "stripe")
            payments = await svc.list_payments(session, "acme")
        assert [(p.amount, p.paid_by) for p in payments] == [(29.99, "stripe")]

    async def test_internal_values(self, db):
        svc = TenantService()
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, "acme")
            tenant.set_internal("domain_id", 17)
        async with db.get_session() as session:
            tenant = await svc.get_by_id(session, "acme")
        assert tenant.get_internal("domain_id") == 17
        assert tenant.get_internal("missing") is None

    async def test_domain_unique_across_tenants(self, db):
        svc = TenantService()
        async with db.get_session() as session:
            await svc.create_tenant(session, "a.b")
        with pytest.raises(IntegrityError):
            async with db.get_session() as session:
                await svc.create_tenant(session, "a", "b")


class TestPackageService:
    async def test_features_round_trip_through_response(self, db):
        async with db.get_session() as session:
            package = await PackageService().create_package(
                session, "Pro", features=["ecommerce"], monthly_fee=10
            )
            response = PackageResponse.model_validate(package)
        assert response.features == ["ecommerce"]

    async def test_list_active_only(self, db):
        svc = PackageService()
        async with db.get_session() as session:
            await svc.create_package(session, "Live")
            retired = await svc.create_package(session, "Old")
            retired.is_active = False
        async with db.get_session() as session:
            assert [p.name for p in await svc.list_packages(session)] == ["Live"]


class TestDecodeJsonList:
    def test_valid(self):
        assert decode_json_list('["a", "b"]') == ["a", "b"]

    def test_empty(self):
        assert decode_json_list(None) == []

    def test_malformed(self):
        assert decode_json_list("{not json") == []

    def test_not_a_list(self):
        assert decode_json_list('{"a": 1}') == []


class TestConfig:
    def test_tenant_db_url(self):
        settings = RetailHubSettings(tenant_db_url_template="sqlite+aiosqlite:///./t_{tenant}.db")
        assert settings.tenant_db_url("acme") == "sqlite+aiosqlite:///./t_acme.db"

    def test_production_refuses_default_keys(self):
        settings = RetailHubSettings(environment="production")
        with pytest.raises(RuntimeError, match="RETAILHUB_API_KEY"):
            settings.validate_for_production()

    def test_development_warns(self):
        with pytest.warns(UserWarning):
            RetailHubSettings(environment="development").validate_for_production()


class TestTenantDatabases:
    async def test_concurrent_first_use_shares_one_manager(self):
        dbs = TenantDatabases(RetailHubSettings(tenant_db_url_template="sqlite+aiosqlite://"))
        try:
            managers = await asyncio.gather(*(dbs.get("acme") for _ in range(3)))
            assert all(m is managers[0] for m in managers)
        finally:
            await dbs.close()

    async def test_tenants_get_separate_databases(self):
        dbs = TenantDatabases(RetailHubSettings(tenant_db_url_template="sqlite+aiosqlite://"))
        try:
            assert await dbs.get("acme") is not await dbs.get("globex")
        finally:
            await dbs.close()


class TestPasswords:
    def test_hash_is_bcrypt(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert bcrypt.checkpw(b"secret123", hashed.encode())
        assert not bcrypt.checkpw(b"wrong", hashed.encode())

    def test_long_password_truncated(self):
        hashed = hash_password("x" * 100)
        assert bcrypt.checkpw(b"x" * 72, hashed.encode())
