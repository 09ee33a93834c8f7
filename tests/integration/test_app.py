"""Integration tests for app wiring."""


class TestApp:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "retailhub"

    async def test_openapi_lists_routes(self, client):
        resp = await client.get("/openapi.json")
        paths = resp.json()["paths"]
        assert "/tenants" in paths
        assert "/packages" in paths
        assert "/tenants/{tenant_id}/imports/{entity}" in paths
