"""Async database managers: one landlord database, one database per tenant."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from retailhub.common.config import RetailHubSettings, get_settings
from retailhub.common.models import LandlordBase, TenantBase

# Import all model modules so each metadata is complete for create_all().
import retailhub.landlord.models  # noqa: F401
import retailhub.access.models  # noqa: F401
import retailhub.settings.models  # noqa: F401
import retailhub.catalog.models  # noqa: F401
import retailhub.people.models  # noqa: F401
import retailhub.geo.models  # noqa: F401
import retailhub.hrm.models  # noqa: F401


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


class DatabaseManager:
    """Manages a single async database engine bound to one declarative base."""

    def __init__(self, url: str, base: type[DeclarativeBase] = LandlordBase):
        self.url = url
        self.base = base
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def landlord(cls, settings: RetailHubSettings | None = None) -> "DatabaseManager":
        settings = settings or get_settings()
        return cls(settings.db_url, LandlordBase)

    async def init(self) -> None:
        if self.engine is not None:
            return
        _ensure_sqlite_dir(self.url)
        self.engine = create_async_engine(self.url, echo=False)
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized; call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized; call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(self.base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None


class TenantDatabases:
    """Registry of per-tenant database managers.

    A manager is created, initialised and migrated on first use and then
    reused, so every caller in the process sees the same tenant database.
    """

    def __init__(self, settings: RetailHubSettings | None = None):
        self._settings = settings or get_settings()
        self._managers: dict[str, DatabaseManager] = {}
        # Serialises first use so concurrent callers share one engine.
        self._lock = asyncio.Lock()

    async def get(self, tenant_id: str) -> DatabaseManager:
        manager = self._managers.get(tenant_id)
        if manager is not None:
            return manager
        async with self._lock:
            manager = self._managers.get(tenant_id)
            if manager is None:
                manager = DatabaseManager(
                    self._settings.tenant_db_url(tenant_id), TenantBase
                )
                await manager.init()
                try:
                    await manager.create_all()
                except Exception:
                    await manager.close()
                    raise
                self._managers[tenant_id] = manager
        return manager

    @asynccontextmanager
    async def session(self, tenant_id: str) -> AsyncGenerator[AsyncSession, None]:
        """Open a session inside the tenant's own database."""
        manager = await self.get(tenant_id)
        async with manager.get_session() as session:
            yield session

    async def close(self) -> None:
        for manager in self._managers.values():
            await manager.close()
        self._managers.clear()
