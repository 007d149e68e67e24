# app/api/routers/audit.py

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from app.api.dependencies import get_audit_query_service, get_rbac
from app.api.guards import require_any_permission, require_permission
from app.domain.schemas.audit import (
    AuditEntryResponse,
    AuditSearchRequest,
    AuditSearchResponse,
    AuditStatsResponse,
    RecentActivityResponse,
    UserActivityResponse,
)
from app.governance.audit_context import AuditContext
from app.governance.audit_models import AuditAction
from app.governance.audit_query_service import AuditQueryService
from app.security.exceptions import AuthorizationError
from app.security.rbac import RBACService

router = APIRouter(tags=["audit"])


@router.get("/recent", response_model=RecentActivityResponse)
async def recent_activity(
    hours: int = Query(24, ge=1, le=24 * 90),
    limit: int = Query(200, ge=1, le=1000),
    _: AuditContext = Depends(require_permission("audit:read:all")),
    queries: AuditQueryService = Depends(get_audit_query_service),
):
    activity = await queries.recent(hours=hours, limit=limit)
    return RecentActivityResponse(
        start=activity.start,
        end=activity.end,
        entries=[AuditEntryResponse.model_validate(e) for e in activity.entries],
        stats=activity.stats,
    )


@router.get("/stats", response_model=AuditStatsResponse)
async def audit_statistics(
    days: int = Query(7, ge=1, le=365),
    _: AuditContext = Depends(require_permission("audit:read:all")),
    queries: AuditQueryService = Depends(get_audit_query_service),
):
    stats = await queries.statistics(days=days)
    return AuditStatsResponse(days=stats.days, daily=stats.daily, top_users=stats.top_users)


@router.post("/search", response_model=AuditSearchResponse)
async def search_audit_log(
    body: AuditSearchRequest,
    _: AuditContext = Depends(require_permission("audit:read:all")),
    queries: AuditQueryService = Depends(get_audit_query_service),
):
    page = await queries.search(
        record_type=body.record_type,
        action=body.action,
        performed_by=body.performed_by,
        start_date=body.start_date,
        end_date=body.end_date,
        search_field=body.search_field,
        limit=body.limit,
        skip=body.skip,
    )
    return AuditSearchResponse(
        entries=[AuditEntryResponse.model_validate(e) for e in page.entries],
        total=page.total,
        page=page.page,
        total_pages=page.total_pages,
    )


@router.get("/export")
async def export_audit_log(
    record_type: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    _: AuditContext = Depends(require_permission("audit:export")),
    queries: AuditQueryService = Depends(get_audit_query_service),
):
    content = await queries.export_csv(
        record_type=record_type, start_date=start_date, end_date=end_date
    )
    filename = f"audit-log-{datetime.now(timezone.utc):%Y%m%d}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/user/{user_id}", response_model=UserActivityResponse)
async def user_activity(
    user_id: str,
    action: Optional[AuditAction] = None,
    record_type: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    skip: int = Query(0, ge=0),
    context: AuditContext = Depends(require_any_permission("audit:read:all", "audit:read:own")),
    rbac: RBACService = Depends(get_rbac),
    queries: AuditQueryService = Depends(get_audit_query_service),
):
    """Staff read anyone's activity; everyone else only their own."""
    check = rbac.validate_permission(context.role, "audit:read:own", user_id, context.actor_id)
    if not check.allowed:
        raise AuthorizationError(
            check.reason or "Insufficient permissions",
            required=check.required_permission,
            user_role=check.user_role,
        )
    activity = await queries.for_user(
        user_id, action=action, record_type=record_type, limit=limit, skip=skip
    )
    return UserActivityResponse(
        entries=[AuditEntryResponse.model_validate(e) for e in activity.entries],
        grouped_by_type={
            k: [AuditEntryResponse.model_validate(e) for e in v]
            for k, v in activity.grouped_by_type.items()
        },
    )


@router.get("/{record_type}/{record_id}", response_model=list[AuditEntryResponse])
async def record_history(
    record_type: str,
    record_id: str,
    limit: int = Query(50, ge=1, le=1000),
    skip: int = Query(0, ge=0),
    _: AuditContext = Depends(require_permission("audit:read:all")),
    queries: AuditQueryService = Depends(get_audit_query_service),
):
    entries = await queries.for_record(record_type, record_id, limit=limit, skip=skip)
    return [AuditEntryResponse.model_validate(e) for e in entries]
