# app/api/routers/versions.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_versioning_service
from app.api.guards import require_permission, require_role
from app.domain.schemas.version import (
    CleanupRequest,
    CleanupResponse,
    RestoreResponse,
    VersionComparisonResponse,
    VersionHistoryResponse,
    VersionResponse,
)
from app.governance.audit_context import AuditContext
from app.governance.versioning_service import VersioningService
from app.security.permissions import Role

router = APIRouter(tags=["versions"])


@router.get("/compare", response_model=VersionComparisonResponse)
async def compare_versions(
    a: str = Query(..., min_length=1),
    b: str = Query(..., min_length=1),
    _: AuditContext = Depends(require_permission("audit:read:all")),
    versioning: VersioningService = Depends(get_versioning_service),
):
    comparison = await versioning.compare_versions(a, b)
    return VersionComparisonResponse.model_validate(comparison)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_versions(
    body: Optional[CleanupRequest] = None,
    _: AuditContext = Depends(require_role(Role.ADMIN, Role.SYSTEM)),
    versioning: VersioningService = Depends(get_versioning_service),
):
    body = body or CleanupRequest()
    result = await versioning.cleanup_expired_versions(
        document_id=body.document_id, document_type=body.document_type
    )
    return CleanupResponse(deleted=result.deleted, message=result.message)


@router.post("/{version_id}/restore", response_model=RestoreResponse)
async def restore_version(
    version_id: str,
    context: AuditContext = Depends(require_permission("system:restore")),
    versioning: VersioningService = Depends(get_versioning_service),
):
    document = await versioning.restore_version(version_id, context)
    return RestoreResponse(message="Document restored", document=document.to_payload())


@router.get("/{document_type}/{document_id}", response_model=VersionHistoryResponse)
async def version_history(
    document_type: str,
    document_id: str,
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    include_data: bool = False,
    _: AuditContext = Depends(require_permission("audit:read:all")),
    versioning: VersioningService = Depends(get_versioning_service),
):
    history = await versioning.get_version_history(
        document_id, document_type, limit=limit, skip=skip, include_data=include_data
    )
    return VersionHistoryResponse.model_validate(history)


@router.get("/{document_type}/{document_id}/{version}", response_model=VersionResponse)
async def get_version(
    document_type: str,
    document_id: str,
    version: int,
    _: AuditContext = Depends(require_permission("audit:read:all")),
    versioning: VersioningService = Depends(get_versioning_service),
):
    found = await versioning.get_version(document_id, document_type, version)
    return VersionResponse.model_validate(found)
