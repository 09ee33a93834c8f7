"""API key authentication dependencies and password hashing."""

import bcrypt
from fastapi import Header, HTTPException


def hash_password(password: str) -> str:
    """bcrypt hash of a plaintext password (bcrypt reads at most 72 bytes)."""
    hashed = bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt())
    return hashed.decode("utf-8")


async def require_api_key(
    x_retailhub_api_key: str = Header(..., alias="X-RetailHub-Api-Key"),
) -> str:
    """FastAPI dependency that validates the tenant-operations API key."""
    from retailhub.common.config import get_settings

    settings = get_settings()
    if x_retailhub_api_key not in (settings.api_key, settings.super_admin_key):
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_retailhub_api_key


async def require_super_admin(
    x_retailhub_api_key: str = Header(..., alias="X-RetailHub-Api-Key"),
) -> str:
    """FastAPI dependency that validates the super-admin (landlord) key."""
    from retailhub.common.config import get_settings

    settings = get_settings()
    if x_retailhub_api_key != settings.super_admin_key:
        raise HTTPException(status_code=403, detail="Invalid super-admin key")
    return x_retailhub_api_key
