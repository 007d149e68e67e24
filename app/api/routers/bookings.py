# app/api/routers/bookings.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.api.dependencies import (
    AppContainer,
    get_audit_query_service,
    get_booking_service,
    get_rbac,
)
from app.api.guards import (
    check_resource_ownership,
    require_any_permission,
    require_permission,
)
from app.application.booking_service import BookingService
from app.domain.models.booking import BOOKING_DOCUMENT_TYPE, Booking
from app.domain.schemas.audit import AuditEntryResponse
from app.domain.schemas.booking import (
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
)
from app.domain.schemas.version import VersionSummaryResponse
from app.governance.audit_context import AuditContext
from app.governance.audit_query_service import AuditQueryService
from app.security.exceptions import AuthorizationError
from app.security.rbac import RBACService

router = APIRouter(tags=["bookings"])


async def _load_booking(container: AppContainer, booking_id: str) -> Booking:
    return await container.booking_service.get_booking(booking_id)


def _authorize_scoped(
    rbac: RBACService, context: AuditContext, action: str, booking: Booking
) -> None:
    """Plain or :all grants act on any booking; :own only on the caller's."""
    if rbac.has_any_permission(context.role, (f"booking:{action}", f"booking:{action}:all")):
        return
    check = rbac.validate_permission(
        context.role, f"booking:{action}:own", booking.user_id, context.actor_id
    )
    if not check.allowed:
        raise AuthorizationError(
            check.reason or "Insufficient permissions",
            required=check.required_permission,
            user_role=check.user_role,
        )


@router.post("/", response_model=BookingResponse, status_code=201)
async def create_booking(
    body: BookingCreateRequest,
    context: AuditContext = Depends(require_permission("booking:create")),
    rbac: RBACService = Depends(get_rbac),
    service: BookingService = Depends(get_booking_service),
):
    """Customers book for themselves; staff may book on behalf of another user."""
    if body.user_id and body.user_id != context.actor_id and not rbac.has_permission(
        context.role, "booking:read:all"
    ):
        raise AuthorizationError(
            "Not authorized: You can only access your own resources",
            required="booking:read:all",
            user_role=context.role,
        )
    booking = await service.create_booking(body, context)
    return BookingResponse.model_validate(booking)


@router.get("/", response_model=list[BookingResponse])
async def list_bookings(
    user_id: Optional[str] = None,
    include_deleted: bool = False,
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    context: AuditContext = Depends(
        require_any_permission("booking:read", "booking:read:own", "booking:read:all")
    ),
    rbac: RBACService = Depends(get_rbac),
    service: BookingService = Depends(get_booking_service),
):
    if not rbac.has_any_permission(context.role, ("booking:read", "booking:read:all")):
        user_id = context.actor_id
    if include_deleted and not rbac.has_permission(context.role, "booking:restore"):
        raise AuthorizationError(
            "Insufficient permissions", required="booking:restore", user_role=context.role
        )
    bookings = await service.list_bookings(
        user_id=user_id, include_deleted=include_deleted, limit=limit, skip=skip
    )
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    dependencies=[
        Depends(require_any_permission("booking:read", "booking:read:own", "booking:read:all")),
    ],
)
async def get_booking(
    request: Request,
    booking_id: str,
    _: AuditContext = Depends(
        check_resource_ownership(
            _load_booking, id_param="booking_id", bypass_permission="booking:read:all"
        )
    ),
):
    return BookingResponse.model_validate(request.state.resource)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    body: BookingUpdateRequest,
    context: AuditContext = Depends(
        require_any_permission("booking:update", "booking:update:own", "booking:update:all")
    ),
    rbac: RBACService = Depends(get_rbac),
    service: BookingService = Depends(get_booking_service),
):
    current = await service.get_booking(booking_id)
    _authorize_scoped(rbac, context, "update", current)
    updated = await service.update_booking(booking_id, body, context)
    return BookingResponse.model_validate(updated)


@router.delete("/{booking_id}", response_model=BookingResponse)
async def delete_booking(
    booking_id: str,
    reason: Optional[str] = Query(None, max_length=500),
    context: AuditContext = Depends(
        require_any_permission("booking:delete", "booking:delete:own", "booking:delete:all")
    ),
    rbac: RBACService = Depends(get_rbac),
    service: BookingService = Depends(get_booking_service),
):
    """Soft delete. The booking stays in storage and can be restored."""
    current = await service.get_booking(booking_id)
    _authorize_scoped(rbac, context, "delete", current)
    deleted = await service.delete_booking(booking_id, context, reason)
    return BookingResponse.model_validate(deleted)


@router.post("/{booking_id}/restore", response_model=BookingResponse)
async def restore_booking(
    booking_id: str,
    context: AuditContext = Depends(require_permission("booking:restore")),
    service: BookingService = Depends(get_booking_service),
):
    restored = await service.restore_booking(booking_id, context)
    return BookingResponse.model_validate(restored)


@router.get(
    "/{booking_id}/audit-history",
    dependencies=[Depends(require_any_permission("audit:read:all", "audit:read:own"))],
)
async def booking_audit_history(
    booking_id: str,
    limit: int = Query(50, ge=1, le=500),
    _: AuditContext = Depends(
        check_resource_ownership(
            _load_booking, id_param="booking_id", bypass_permission="audit:read:all"
        )
    ),
    queries: AuditQueryService = Depends(get_audit_query_service),
    service: BookingService = Depends(get_booking_service),
):
    entries = await queries.for_record(BOOKING_DOCUMENT_TYPE, booking_id, limit=limit)
    history = await service.version_history(booking_id, limit=limit)
    return {
        "booking_id": booking_id,
        "entries": [AuditEntryResponse.model_validate(e).model_dump(mode="json") for e in entries],
        "versions": [
            VersionSummaryResponse.model_validate(v.summary()).model_dump(mode="json")
            for v in history.versions
        ],
        "current_version": history.current_version,
    }
