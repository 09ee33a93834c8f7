"""Landlord CRUD: tenants, their domains and payments, and packages."""

import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from retailhub.common.exceptions import TenantExistsError
from retailhub.landlord.models import (
    DomainModel,
    PackageModel,
    TenantModel,
    TenantPaymentModel,
)

logger = logging.getLogger(__name__)


def decode_json_list(raw: str | None, owner: object = None) -> list:
    """Decode a JSON list stored as text; malformed data yields []."""
    try:
        value = json.loads(raw or "[]")
    except (TypeError, ValueError):
        logger.warning("Malformed JSON list on %s", owner)
        return []
    if not isinstance(value, list):
        logger.warning("JSON value on %s is not a list", owner)
        return []
    return value


class TenantService:
    """Tenant management operations."""

    async def create_tenant(
        self,
        session: AsyncSession,
        tenant_id: str,
        central_domain: str = "",
    ) -> TenantModel:
        """Create a tenant row and its `{tenant}.{central_domain}` domain mapping."""
        if await self.get_by_id(session, tenant_id) is not None:
            raise TenantExistsError(f"Tenant '{tenant_id}' already exists")
        tenant = TenantModel(id=tenant_id, data={})
        session.add(tenant)
        domain = f"{tenant_id}.{central_domain}" if central_domain else tenant_id
        session.add(DomainModel(domain=domain, tenant_id=tenant_id))
        await session.flush()
        return tenant

    async def get_by_id(
        self, session: AsyncSession, tenant_id: str
    ) -> TenantModel | None:
        return await session.get(TenantModel, tenant_id)

    async def get_domains(
        self, session: AsyncSession, tenant_id: str
    ) -> list[str]:
        result = await session.execute(
            select(DomainModel.domain).where(DomainModel.tenant_id == tenant_id)
        )
        return list(result.scalars().all())

    async def list_tenants(self, session: AsyncSession) -> list[TenantModel]:
        result = await session.execute(
            select(TenantModel)
            .options(selectinload(TenantModel.domains))
            .order_by(TenantModel.created_at)
        )
        return list(result.scalars().all())

    async def update_tenant(
        self, session: AsyncSession, tenant_id: str, **updates: Any
    ) -> TenantModel | None:
        tenant = await self.get_by_id(session, tenant_id)
        if tenant is None:
            return None
        for field in (
            "package_id", "subscription_type", "expiry_date", "email",
            "company_name", "phone_number", "modules",
        ):
            if field in updates:
                setattr(tenant, field, updates[field])
        await session.flush()
        return tenant

    async def record_payment(
        self,
        session: AsyncSession,
        tenant_id: str,
        amount: float,
        paid_by: str,
    ) -> TenantPaymentModel:
        payment = TenantPaymentModel(tenant_id=tenant_id, amount=amount, paid_by=paid_by)
        session.add(payment)
        await session.flush()
        return payment

    async def list_payments(
        self, session: AsyncSession, tenant_id: str
    ) -> list[TenantPaymentModel]:
        result = await session.execute(
            select(TenantPaymentModel).where(TenantPaymentModel.tenant_id == tenant_id)
        )
        return list(result.scalars().all())


class PackageService:
    """Read-mostly package catalog."""

    async def create_package(
        self,
        session: AsyncSession,
        name: str,
        features: list[str] | None = None,
        is_free_trial: bool = False,
        role_permission_values: str = "",
        permission_ids: list[int] | None = None,
        monthly_fee: float = 0.0,
        yearly_fee: float = 0.0,
    ) -> PackageModel:
        package = PackageModel(
            name=name,
            features=json.dumps(features or []),
            is_free_trial=is_free_trial,
            role_permission_values=role_permission_values,
            permission_ids=json.dumps(permission_ids or []),
            monthly_fee=monthly_fee,
            yearly_fee=yearly_fee,
        )
        session.add(package)
        await session.flush()
        return package

    async def get_package(
        self, session: AsyncSession, package_id: int
    ) -> PackageModel | None:
        return await session.get(PackageModel, package_id)

    async def list_packages(self, session: AsyncSession) -> list[PackageModel]:
        result = await session.execute(
            select(PackageModel).where(PackageModel.is_active.is_(True))
        )
        return list(result.scalars().all())
