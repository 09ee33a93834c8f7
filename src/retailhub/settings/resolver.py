"""Settings resolution: platform general/mail settings and per-tenant configs.

Nothing here mutates process-wide state. Mail and storage credentials read
from a database row are returned as frozen config objects that callers pass
into whatever client needs them.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from retailhub.landlord.models import LandlordGeneralSettingModel, LandlordMailSettingModel
from retailhub.settings.models import GeneralSettingModel

logger = logging.getLogger(__name__)

GENERAL_SETTING_CACHE_KEY = "general_setting"


class SettingsCache:
    """Small in-process key/value cache with a per-entry TTL."""

    def __init__(self, ttl: int = 3600):
        self.ttl = ttl
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (time.monotonic() + self.ttl, value)

    def forget(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


@dataclass(frozen=True)
class GeneralSettings:
    """Snapshot of the platform's general settings row."""

    site_title: str
    site_logo: str | None
    developed_by: str | None
    email: str | None
    free_trial_limit: int


@dataclass(frozen=True)
class MailConfig:
    driver: str
    host: str
    port: int
    from_address: str
    from_name: str
    username: str = ""
    password: str = ""
    encryption: str | None = None
    api_key: str | None = None


# ── Storage ──


@dataclass(frozen=True)
class LocalStorage:
    provider: str = "public"


@dataclass(frozen=True)
class S3Storage:
    key: str | None
    secret: str | None
    region: str | None
    bucket: str | None
    url: str | None = None
    endpoint: str | None = None
    provider: str = "s3"


@dataclass(frozen=True)
class FtpStorage:
    host: str | None
    username: str | None
    password: str | None
    port: int = 21
    root: str = "/"
    provider: str = "ftp"


@dataclass(frozen=True)
class SftpStorage:
    host: str | None
    username: str | None
    password: str | None = None
    private_key: str | None = None
    port: int = 22
    root: str = "/"
    provider: str = "sftp"


@dataclass(frozen=True)
class CloudinaryStorage:
    cloud_name: str | None
    api_key: str | None
    api_secret: str | None
    provider: str = "cloudinary"

    @property
    def url(self) -> str | None:
        if self.cloud_name and self.api_key and self.api_secret:
            return f"cloudinary://{self.api_key}:{self.api_secret}@{self.cloud_name}"
        return None


StorageConfig = Union[LocalStorage, S3Storage, FtpStorage, SftpStorage, CloudinaryStorage]


def resolve_storage_config(setting: GeneralSettingModel | None) -> StorageConfig:
    """Map a tenant's general settings row to its storage backend config."""
    if setting is None:
        return LocalStorage()
    provider = (setting.storage_provider or "public").lower()
    if provider == "s3":
        return S3Storage(
            key=setting.aws_access_key_id,
            secret=setting.aws_secret_access_key,
            region=setting.aws_default_region,
            bucket=setting.aws_bucket,
            url=setting.aws_url,
            endpoint=setting.aws_endpoint,
        )
    if provider == "ftp":
        return FtpStorage(
            host=setting.ftp_host,
            username=setting.ftp_username,
            password=setting.ftp_password,
            port=setting.ftp_port or 21,
            root=setting.ftp_root or "/",
        )
    if provider == "sftp":
        return SftpStorage(
            host=setting.sftp_host,
            username=setting.sftp_username,
            password=setting.sftp_password,
            private_key=setting.sftp_private_key,
            port=setting.sftp_port or 22,
            root=setting.sftp_root or "/",
        )
    if provider == "cloudinary":
        return CloudinaryStorage(
            cloud_name=setting.cloudinary_cloud_name,
            api_key=setting.cloudinary_api_key,
            api_secret=setting.cloudinary_api_secret,
        )
    if provider != "public":
        logger.warning("Unknown storage provider %r, using local storage", provider)
    return LocalStorage()


def _mail_config_from_row(row: LandlordMailSettingModel) -> MailConfig:
    return MailConfig(
        driver=(row.driver or "smtp").lower(),
        host=row.host or "",
        port=int(row.port or 0),
        from_address=row.from_address or "",
        from_name=row.from_name or "",
        username=row.username or "",
        password=row.password or "",
        encryption=row.encryption,
        api_key=row.api_key,
    )


class SettingsResolver:
    """Cache-first reader for the landlord database's settings rows."""

    def __init__(self, cache: SettingsCache | None = None):
        self.cache = cache or SettingsCache()

    async def general_settings(self, session: AsyncSession) -> GeneralSettings | None:
        cached = self.cache.get(GENERAL_SETTING_CACHE_KEY)
        if cached is not None:
            return cached

        result = await session.execute(
            select(LandlordGeneralSettingModel)
            .order_by(LandlordGeneralSettingModel.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None

        settings = GeneralSettings(
            site_title=row.site_title,
            site_logo=row.site_logo,
            developed_by=row.developed_by,
            email=row.email,
            free_trial_limit=row.free_trial_limit or 0,
        )
        self.cache.set(GENERAL_SETTING_CACHE_KEY, settings)
        return settings

    async def mail_config(self, session: AsyncSession) -> MailConfig | None:
        result = await session.execute(
            select(LandlordMailSettingModel)
            .order_by(LandlordMailSettingModel.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _mail_config_from_row(row) if row is not None else None

    def invalidate(self) -> None:
        self.cache.forget(GENERAL_SETTING_CACHE_KEY)


async def tenant_general_setting(session: AsyncSession) -> GeneralSettingModel | None:
    """Latest general settings row of a tenant database."""
    result = await session.execute(
        select(GeneralSettingModel).order_by(GeneralSettingModel.id.desc()).limit(1)
    )
    return result.scalar_one_or_none()

