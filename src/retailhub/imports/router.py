"""Spreadsheet import endpoint for a tenant database."""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from retailhub.common.config import get_settings
from retailhub.common.exceptions import (
    ImportFileError,
    ImportFileTooLargeError,
    UnknownImportError,
)
from retailhub.common.security import require_api_key
from retailhub.imports.base import ImportPipeline, read_rows
from retailhub.imports.importers import get_importer
from retailhub.imports.schemas import ImportResultResponse, RowErrorResponse

router = APIRouter(prefix="/tenants", tags=["imports"])


def _get_db():
    from retailhub.deps import get_db
    return get_db()


def _get_tenant_dbs():
    from retailhub.deps import get_tenant_dbs
    return get_tenant_dbs()


def _get_tenant_service():
    from retailhub.deps import get_tenant_service
    return get_tenant_service()


@router.post("/{tenant_id}/imports/{entity}", response_model=ImportResultResponse)
async def import_rows(
    tenant_id: str,
    entity: str,
    file: UploadFile = File(...),
    user_id: Optional[int] = Query(default=None, description="Acting tenant user"),
    _=Depends(require_api_key),
):
    try:
        importer = get_importer(entity)
    except UnknownImportError as exc:
        raise HTTPException(status_code=404, detail=exc.message)

    async with _get_db().get_session() as session:
        if await _get_tenant_service().get_by_id(session, tenant_id) is None:
            raise HTTPException(status_code=404, detail="Tenant not found")

    settings = get_settings()
    # One byte past the limit is enough for read_rows to reject the file.
    content = await file.read(settings.import_max_bytes + 1)
    try:
        rows = read_rows(file.filename or "", content, settings.import_max_bytes)
        pipeline = ImportPipeline(importer, chunk_size=settings.import_chunk_size)
        async with _get_tenant_dbs().session(tenant_id) as session:
            result = await pipeline.run(session, rows, user_id=user_id)
    except ImportFileTooLargeError as exc:
        raise HTTPException(status_code=413, detail=exc.message)
    except ImportFileError as exc:
        raise HTTPException(status_code=422, detail=exc.message)

    return ImportResultResponse(
        entity=entity,
        imported=result.imported,
        skipped=result.skipped,
        errors=[RowErrorResponse.model_validate(e) for e in result.errors],
    )
