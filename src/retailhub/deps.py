"""Dependency injection singletons for RetailHub."""

from retailhub.common.config import get_settings
from retailhub.common.database import DatabaseManager, TenantDatabases
from retailhub.landlord.service import PackageService, TenantService
from retailhub.provisioning.registrar import SubdomainRegistrar, build_registrar
from retailhub.provisioning.service import TenantProvisioner
from retailhub.settings.resolver import SettingsCache, SettingsResolver

_db: DatabaseManager | None = None
_tenant_dbs: TenantDatabases | None = None
_resolver: SettingsResolver | None = None
_registrar: SubdomainRegistrar | None = None
_tenants: TenantService | None = None
_packages: PackageService | None = None
_provisioner: TenantProvisioner | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager.landlord(get_settings())
    return _db


def get_tenant_dbs() -> TenantDatabases:
    global _tenant_dbs
    if _tenant_dbs is None:
        _tenant_dbs = TenantDatabases(get_settings())
    return _tenant_dbs


def get_settings_resolver() -> SettingsResolver:
    global _resolver
    if _resolver is None:
        _resolver = SettingsResolver(SettingsCache(get_settings().settings_cache_ttl))
    return _resolver


def get_registrar() -> SubdomainRegistrar:
    global _registrar
    if _registrar is None:
        _registrar = build_registrar(get_settings())
    return _registrar


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        _tenants = TenantService()
    return _tenants


def get_package_service() -> PackageService:
    global _packages
    if _packages is None:
        _packages = PackageService()
    return _packages


def get_provisioner() -> TenantProvisioner:
    global _provisioner
    if _provisioner is None:
        _provisioner = TenantProvisioner(
            get_settings(),
            get_tenant_dbs(),
            get_registrar(),
            resolver=get_settings_resolver(),
            tenant_service=get_tenant_service(),
            package_service=get_package_service(),
        )
    return _provisioner


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _tenant_dbs, _resolver, _registrar, _tenants, _packages, _provisioner
    _db = None
    _tenant_dbs = None
    _resolver = None
    _registrar = None
    _tenants = None
    _packages = None
    _provisioner = None
