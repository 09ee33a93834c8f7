"""Integration tests for the tenant and package routers; super-admin auth required."""

import pytest


TENANT = {
    "subscription_type": "monthly",
    "tenant": "acme",
    "name": "Jane",
    "email": "jane@acme.example.com",
    "password": "secret123",
    "company_name": "Acme",
}


async def add_general_settings():
    from retailhub.deps import get_db
    from retailhub.landlord.models import LandlordGeneralSettingModel

    async with get_db().get_session() as session:
        session.add(LandlordGeneralSettingModel(site_title="RetailHub Cloud", free_trial_limit=7))


@pytest.fixture
async def package_id(client, super_admin_headers):
    resp = await client.post(
        "/packages",
        json={"name": "Pro", "features": ["reports"], "monthly_fee": 29.99},
        headers=super_admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()["id"]


class TestPackageRouter:
    async def test_requires_auth(self, client):
        resp = await client.get("/packages")
        assert resp.status_code == 422  # missing header

    async def test_tenant_key_is_not_enough(self, client, admin_headers):
        resp = await client.get("/packages", headers=admin_headers)
        assert resp.status_code == 403

    async def test_create_and_list(self, client, super_admin_headers, package_id):
        resp = await client.get("/packages", headers=super_admin_headers)
        assert resp.status_code == 200
        packages = resp.json()
        assert [p["id"] for p in packages] == [package_id]
        assert packages[0]["features"] == ["reports"]
        assert packages[0]["monthly_fee"] == 29.99


class TestTenantRouter:
    async def test_create_tenant_requires_auth(self, client):
        resp = await client.post("/tenants", json=TENANT)
        assert resp.status_code == 422

    async def test_create_tenant_wrong_key(self, client):
        resp = await client.post(
            "/tenants",
            json={**TENANT, "package_id": 1},
            headers={"X-RetailHub-Api-Key": "wrong-key"},
        )
        assert resp.status_code == 403

    async def test_missing_general_settings(self, client, super_admin_headers, package_id):
        resp = await client.post(
            "/tenants", json={**TENANT, "package_id": package_id}, headers=super_admin_headers
        )
        assert resp.status_code == 503
        assert "General settings" in resp.json()["detail"]

    async def test_unknown_package(self, client, super_admin_headers):
        await add_general_settings()
        resp = await client.post(
            "/tenants", json={**TENANT, "package_id": 42}, headers=super_admin_headers
        )
        assert resp.status_code == 503

    async def test_invalid_subdomain(self, client, super_admin_headers):
        resp = await client.post(
            "/tenants",
            json={**TENANT, "package_id": 1, "tenant": "Not A Host"},
            headers=super_admin_headers,
        )
        assert resp.status_code == 422

    async def test_create_get_and_list(self, client, super_admin_headers, package_id):
        await add_general_settings()
        resp = await client.post(
            "/tenants", json={**TENANT, "package_id": package_id}, headers=super_admin_headers
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["tenant_id"] == "acme"
        assert data["mail_sent"] is False
        assert data["message"].startswith("Client created successfully.")
        # Wildcard DNS is configured in tests, so no control panel call
        assert data["subdomain_registered"] is None

        resp = await client.get("/tenants/acme", headers=super_admin_headers)
        assert resp.status_code == 200
        tenant = resp.json()
        assert tenant["package_id"] == package_id
        assert tenant["email"] == "jane@acme.example.com"
        assert tenant["domains"] == ["acme"]

        resp = await client.get("/tenants", headers=super_admin_headers)
        assert [t["id"] for t in resp.json()] == ["acme"]

    async def test_duplicate_tenant(self, client, super_admin_headers, package_id):
        await add_general_settings()
        body = {**TENANT, "package_id": package_id}
        first = await client.post("/tenants", json=body, headers=super_admin_headers)
        assert first.status_code == 201
        second = await client.post("/tenants", json=body, headers=super_admin_headers)
        assert second.status_code == 409

    async def test_get_unknown_tenant(self, client, super_admin_headers):
        resp = await client.get("/tenants/ghost", headers=super_admin_headers)
        assert resp.status_code == 404

    async def test_change_plan(self, client, super_admin_headers, package_id):
        await add_general_settings()
        await client.post(
            "/tenants", json={**TENANT, "package_id": package_id}, headers=super_admin_headers
        )
        resp = await client.post(
            "/packages",
            json={"name": "Shop", "features": ["ecommerce"]},
            headers=super_admin_headers,
        )
        shop_id = resp.json()["id"]

        resp = await client.put(
            "/tenants/acme/plan",
            json={"package_id": shop_id, "expiry_date": "2030-01-01", "subscription_type": "yearly"},
            headers=super_admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["package_id"] == shop_id
        assert data["modules"] == "ecommerce"
        assert data["expiry_date"] == "2030-01-01"
        assert data["subscription_type"] == "yearly"

    async def test_change_plan_unknown_tenant(self, client, super_admin_headers, package_id):
        resp = await client.put(
            "/tenants/ghost/plan", json={"package_id": package_id}, headers=super_admin_headers
        )
        assert resp.status_code == 404

    async def test_delete_subdomain_without_control_panel(
        self, client, super_admin_headers, package_id
    ):
        await add_general_settings()
        await client.post(
            "/tenants", json={**TENANT, "package_id": package_id}, headers=super_admin_headers
        )
        resp = await client.delete("/tenants/acme/subdomain", headers=super_admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"tenant_id": "acme", "deleted": False}
