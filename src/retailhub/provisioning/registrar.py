"""Hosting control-panel clients that create and delete tenant subdomains.

Registrars never raise: any failure is logged and reported as ``False``.
"""

import logging
from typing import Protocol

import httpx

from retailhub.common.config import RetailHubSettings
from retailhub.landlord.models import TenantModel

logger = logging.getLogger(__name__)

PLESK_DOMAIN_ID_KEY = "domain_id"


class SubdomainRegistrar(Protocol):
    async def add_subdomain(self, tenant: TenantModel) -> bool: ...

    async def delete_subdomain(self, tenant: TenantModel) -> bool: ...


class _HttpRegistrar:
    """Shared httpx plumbing for control-panel registrars."""

    def __init__(
        self,
        settings: RetailHubSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self._transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        # Control panels commonly run on self-signed certificates.
        return httpx.AsyncClient(
            verify=False,
            timeout=self.settings.http_timeout,
            transport=self._transport,
            **kwargs,
        )


class CpanelRegistrar(_HttpRegistrar):
    """cPanel JSON API v2 ``SubDomain`` module."""

    def _configured(self) -> bool:
        s = self.settings
        if not (s.central_domain and s.cpanel_user_name and s.cpanel_api_key):
            logger.error("Missing cPanel configuration")
            return False
        return True

    @property
    def _base_url(self) -> str:
        return f"https://{self.settings.central_domain}:2083/json-api/cpanel"

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": (
                f"cpanel {self.settings.cpanel_user_name}:{self.settings.cpanel_api_key}"
            )
        }

    async def _call(self, params: dict[str, str], tenant_id: str) -> bool:
        query = {
            "cpanel_jsonapi_module": "SubDomain",
            "cpanel_jsonapi_version": "2",
            **params,
        }
        try:
            async with self._client() as client:
                resp = await client.get(self._base_url, params=query, headers=self._headers)
            if resp.is_success:
                return True
            logger.warning(
                "cPanel %s failed: %s %s",
                params["cpanel_jsonapi_func"], resp.status_code, resp.text,
                extra={"tenant_id": tenant_id},
            )
            return False
        except Exception:
            logger.exception(
                "cPanel %s call failed", params["cpanel_jsonapi_func"],
                extra={"tenant_id": tenant_id},
            )
            return False

    async def add_subdomain(self, tenant: TenantModel) -> bool:
        if not self._configured():
            return False
        central = self.settings.central_domain
        document_root = "public_html" if self.settings.root_domain else central
        return await self._call(
            {
                "cpanel_jsonapi_func": "addsubdomain",
                "domain": tenant.id,
                "rootdomain": central,
                "dir": document_root,
            },
            tenant.id,
        )

    async def delete_subdomain(self, tenant: TenantModel) -> bool:
        if not self._configured():
            return False
        return await self._call(
            {
                "cpanel_jsonapi_func": "delsubdomain",
                "domain": f"{tenant.id}.{self.settings.central_domain}",
            },
            tenant.id,
        )


class PleskRegistrar(_HttpRegistrar):
    """Plesk REST API v2 domains endpoint."""

    def _configured(self) -> bool:
        s = self.settings
        if not (s.central_domain and s.plesk_user_name and s.plesk_password):
            logger.error("Missing Plesk configuration")
            return False
        return True

    @property
    def _base_url(self) -> str:
        return f"https://{self.settings.central_domain}:8443/api/v2/domains"

    def _auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.settings.plesk_user_name, self.settings.plesk_password)

    async def add_subdomain(self, tenant: TenantModel) -> bool:
        """Create the domain and remember Plesk's id for it on the tenant."""
        if not self._configured():
            return False
        host = self.settings.central_domain
        payload = {
            "name": f"{tenant.id}.{host}",
            "hosting_type": "virtual",
            "hosting_settings": {"document_root": "/httpdocs"},
            "parent_domain": {"name": host},
        }
        try:
            async with self._client(auth=self._auth()) as client:
                resp = await client.post(self._base_url, json=payload)
            if not resp.is_success:
                logger.warning(
                    "Plesk domain creation failed: %s %s", resp.status_code, resp.text,
                    extra={"tenant_id": tenant.id},
                )
                return False
            domain_id = resp.json().get("id")
            if domain_id is not None:
                tenant.set_internal(PLESK_DOMAIN_ID_KEY, domain_id)
            return True
        except Exception:
            logger.exception("Plesk domain creation failed", extra={"tenant_id": tenant.id})
            return False

    async def delete_subdomain(self, tenant: TenantModel) -> bool:
        if not self._configured():
            return False
        domain_id = tenant.get_internal(PLESK_DOMAIN_ID_KEY)
        if not domain_id:
            logger.warning("No Plesk domain id stored", extra={"tenant_id": tenant.id})
            return False
        try:
            async with self._client(auth=self._auth()) as client:
                resp = await client.delete(f"{self._base_url}/{domain_id}")
            if resp.is_success:
                return True
            logger.warning(
                "Plesk domain deletion failed: %s %s", resp.status_code, resp.text,
                extra={"tenant_id": tenant.id},
            )
            return False
        except Exception:
            logger.exception("Plesk domain deletion failed", extra={"tenant_id": tenant.id})
            return False


class UnsupportedRegistrar:
    """Used when the configured server type has no control-panel client."""

    def __init__(self, server_type: str):
        self.server_type = server_type

    async def add_subdomain(self, tenant: TenantModel) -> bool:
        logger.warning(
            "Unsupported server type %r; subdomain not created", self.server_type,
            extra={"tenant_id": tenant.id},
        )
        return False

    async def delete_subdomain(self, tenant: TenantModel) -> bool:
        logger.warning(
            "Unsupported server type %r; subdomain not deleted", self.server_type,
            extra={"tenant_id": tenant.id},
        )
        return False


def build_registrar(
    settings: RetailHubSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SubdomainRegistrar:
    """Pick the registrar for ``settings.server_type`` once, at wiring time."""
    server_type = (settings.server_type or "").lower()
    if server_type == "cpanel":
        return CpanelRegistrar(settings, transport)
    if server_type == "plesk":
        return PleskRegistrar(settings, transport)
    return UnsupportedRegistrar(server_type)


async def add_subdomain(registrar: SubdomainRegistrar, tenant: TenantModel) -> bool:
    """Guarded entry point: an empty tenant id never reaches the control panel."""
    if not tenant.id:
        logger.error("Cannot register a subdomain for a tenant without an id")
        return False
    return await registrar.add_subdomain(tenant)


async def delete_subdomain(registrar: SubdomainRegistrar, tenant: TenantModel) -> bool:
    if not tenant.id:
        logger.error("Cannot delete a subdomain for a tenant without an id")
        return False
    return await registrar.delete_subdomain(tenant)
