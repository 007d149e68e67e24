"""API middleware: correlation ID, actor context, request audit log."""

import json
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.context import actor_id_ctx, correlation_id_ctx
from app.governance.audit_context import AuditContext
from app.security.rbac import coerce_role

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_NAME_HEADER = "X-Actor-Name"
ACTOR_ROLE_HEADER = "X-Actor-Role"
SESSION_HEADER = "X-Session-Id"
FORWARDED_FOR_HEADER = "X-Forwarded-For"


def client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For when present, else the socket peer."""
    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class ActorContextMiddleware(BaseHTTPMiddleware):
    """
    Build the AuditContext from the identity headers set by the upstream gateway.
    No X-Actor-Id means an anonymous request; guards decide whether that is allowed.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        actor_id = (request.headers.get(ACTOR_ID_HEADER) or "").strip()
        if not actor_id:
            request.state.audit_context = None
            actor_id_ctx.set(None)
            return await call_next(request)

        raw_role = (request.headers.get(ACTOR_ROLE_HEADER) or "").strip().lower()
        role = coerce_role(raw_role)
        if role is None:
            return JSONResponse(
                status_code=400,
                content={"detail": f"{ACTOR_ROLE_HEADER} header must name a known role"},
            )
        request.state.audit_context = AuditContext(
            actor_id=actor_id,
            actor_name=(request.headers.get(ACTOR_NAME_HEADER) or "").strip() or actor_id,
            role=role.value,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
            session_id=request.headers.get(SESSION_HEADER),
        )
        actor_id_ctx.set(actor_id)
        return await call_next(request)


class RequestAuditMiddleware(BaseHTTPMiddleware):
    """After response: log structured request event (correlation_id, actor, path, method, status_code)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        context = getattr(request.state, "audit_context", None)
        audit_event = {
            "event": "request_audit",
            "correlation_id": getattr(request.state, "correlation_id", None),
            "actor_id": context.actor_id if context else None,
            "role": context.role if context else None,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
        }
        logger.info(json.dumps(audit_event))
        return response
