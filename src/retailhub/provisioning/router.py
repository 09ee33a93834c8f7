"""Tenant API router: provisioning, plan changes and subdomain removal.

Requires super-admin authentication.
"""

from fastapi import APIRouter, Depends, HTTPException

from retailhub.common.exceptions import (
    ConfigurationMissingError,
    TenantExistsError,
    TenantNotFoundError,
)
from retailhub.common.security import require_super_admin
from retailhub.landlord.models import TenantModel
from retailhub.landlord.schemas import TenantResponse
from retailhub.provisioning.schemas import (
    ChangePlanRequest,
    ProvisioningResult,
    SubdomainResult,
    TenantCreateRequest,
)

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _get_provisioner():
    from retailhub.deps import get_provisioner
    return get_provisioner()


def _get_service():
    from retailhub.deps import get_tenant_service
    return get_tenant_service()


def _get_db():
    from retailhub.deps import get_db
    return get_db()


def _tenant_response(tenant: TenantModel, domains: list[str]) -> TenantResponse:
    return TenantResponse(
        id=tenant.id,
        package_id=tenant.package_id,
        subscription_type=tenant.subscription_type,
        expiry_date=tenant.expiry_date,
        email=tenant.email,
        company_name=tenant.company_name,
        phone_number=tenant.phone_number,
        modules=tenant.modules,
        domains=domains,
        created_at=tenant.created_at,
    )


@router.post("", response_model=ProvisioningResult, status_code=201)
async def create_tenant(body: TenantCreateRequest, _=Depends(require_super_admin)):
    provisioner = _get_provisioner()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await provisioner.create_tenant(session, body)
    except TenantExistsError as exc:
        raise HTTPException(status_code=409, detail=exc.message)
    except ConfigurationMissingError as exc:
        raise HTTPException(status_code=503, detail=exc.message)


@router.get("", response_model=list[TenantResponse])
async def list_tenants(_=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenants = await svc.list_tenants(session)
        return [_tenant_response(t, [d.domain for d in t.domains]) for t in tenants]


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant_id: str, _=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get_by_id(session, tenant_id)
        if tenant is None:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return _tenant_response(tenant, await svc.get_domains(session, tenant_id))


@router.put("/{tenant_id}/plan", response_model=TenantResponse)
async def change_plan(
    tenant_id: str, body: ChangePlanRequest, _=Depends(require_super_admin)
):
    provisioner = _get_provisioner()
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            tenant = await provisioner.change_plan(session, tenant_id, **body.model_dump())
            return _tenant_response(tenant, await svc.get_domains(session, tenant_id))
    except TenantNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    except ConfigurationMissingError as exc:
        raise HTTPException(status_code=503, detail=exc.message)


@router.delete("/{tenant_id}/subdomain", response_model=SubdomainResult)
async def delete_subdomain(tenant_id: str, _=Depends(require_super_admin)):
    provisioner = _get_provisioner()
    db = _get_db()
    try:
        async with db.get_session() as session:
            deleted = await provisioner.remove_tenant_subdomain(session, tenant_id)
    except TenantNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    return SubdomainResult(tenant_id=tenant_id, deleted=deleted)
