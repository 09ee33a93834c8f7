"""Package catalog API router; requires super-admin authentication."""

from fastapi import APIRouter, Depends

from retailhub.common.security import require_super_admin
from retailhub.landlord.schemas import PackageCreate, PackageResponse

router = APIRouter(prefix="/packages", tags=["packages"])


def _get_service():
    from retailhub.deps import get_package_service
    return get_package_service()


def _get_db():
    from retailhub.deps import get_db
    return get_db()


@router.post("", response_model=PackageResponse, status_code=201)
async def create_package(body: PackageCreate, _=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        package = await svc.create_package(session, **body.model_dump())
        return PackageResponse.model_validate(package)


@router.get("", response_model=list[PackageResponse])
async def list_packages(_=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        packages = await svc.list_packages(session)
        return [PackageResponse.model_validate(p) for p in packages]
