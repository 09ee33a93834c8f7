"""RetailHub configuration via pydantic-settings."""

import warnings
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "api_key": "insecure-admin-key-change-me",
    "super_admin_key": "insecure-super-admin-key-change-me",
}


class RetailHubSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RETAILHUB_")

    environment: str = "development"
    log_level: str = "INFO"

    # Landlord (central) database
    db_url: str = "sqlite+aiosqlite:///./data/landlord.db"
    # One database per tenant; "{tenant}" is replaced by the tenant id.
    tenant_db_url_template: str = "sqlite+aiosqlite:///./data/tenant_{tenant}.db"

    # API
    api_title: str = "RetailHub"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    super_admin_key: str = "insecure-super-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Hosting
    central_domain: str = ""
    root_domain: str = ""
    wildcard_subdomain: bool = False
    server_type: str = ""  # "cpanel" or "plesk"
    cpanel_user_name: str = ""
    cpanel_api_key: str = ""
    plesk_user_name: str = ""
    plesk_password: str = ""
    http_timeout: float = 10.0

    # Static assets (logo copies)
    public_path: str = "./public"

    # Settings cache
    settings_cache_ttl: int = 3600  # seconds

    # Imports
    import_max_bytes: int = 10 * 1024 * 1024
    # Overrides every importer's own chunk size when set.
    import_chunk_size: Optional[int] = None

    def tenant_db_url(self, tenant_id: str) -> str:
        return self.tenant_db_url_template.replace("{tenant}", tenant_id)

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"RETAILHUB_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys; set RETAILHUB_API_KEY and "
                "RETAILHUB_SUPER_ADMIN_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> RetailHubSettings:
    settings = RetailHubSettings()
    settings.validate_for_production()
    return settings
