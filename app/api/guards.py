"""
Route guards as FastAPI dependency factories.

Each guard resolves the actor from request.state, raises AuthenticationRequiredError
(401) when there is none and AuthorizationError (403) when the role falls short.
On success it records the role, its permissions and its access level on
request.state for the handler and returns the AuditContext.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from fastapi import Depends, Request

from app.api.dependencies import AppContainer, get_container, get_rbac
from app.governance.audit_context import AuditContext
from app.governance.exceptions import RecordNotFoundError
from app.security.exceptions import AuthenticationRequiredError, AuthorizationError
from app.security.permissions import AccessLevel, Role
from app.security.rbac import RBACService

logger = logging.getLogger(__name__)

ResourceLoader = Callable[[AppContainer, str], Awaitable[Optional[Any]]]


def require_actor(request: Request) -> AuditContext:
    context = getattr(request.state, "audit_context", None)
    if context is None:
        raise AuthenticationRequiredError()
    return context


def _resource_of(permission: str) -> str:
    return permission.split(":", 1)[0]


def _attach(request: Request, rbac: RBACService, context: AuditContext, resource: Optional[str]) -> None:
    request.state.user_role = context.role
    request.state.permissions = rbac.get_permissions(context.role)
    if resource is not None:
        request.state.access_level = rbac.get_access_level(context.role, resource)


def _deny(context: AuditContext, message: str, **details: Any) -> AuthorizationError:
    logger.warning(
        "authorization_denied",
        extra={"actor_id": context.actor_id, "role": context.role, "reason": message, **details},
    )
    return AuthorizationError(message, user_role=context.role, **details)


def require_permission(permission: str):
    async def guard(request: Request, rbac: RBACService = Depends(get_rbac)) -> AuditContext:
        context = require_actor(request)
        if not rbac.has_permission(context.role, permission):
            raise _deny(context, "Insufficient permissions", required=permission)
        _attach(request, rbac, context, _resource_of(permission))
        return context

    return guard


def require_any_permission(*permissions: str):
    async def guard(request: Request, rbac: RBACService = Depends(get_rbac)) -> AuditContext:
        context = require_actor(request)
        if not rbac.has_any_permission(context.role, permissions):
            raise _deny(context, "Insufficient permissions", required=" | ".join(permissions))
        _attach(request, rbac, context, _resource_of(permissions[0]) if permissions else None)
        return context

    return guard


def require_all_permissions(*permissions: str):
    async def guard(request: Request, rbac: RBACService = Depends(get_rbac)) -> AuditContext:
        context = require_actor(request)
        if not rbac.has_all_permissions(context.role, permissions):
            raise _deny(context, "Insufficient permissions", required=" & ".join(permissions))
        _attach(request, rbac, context, _resource_of(permissions[0]) if permissions else None)
        return context

    return guard


def require_role(*roles: Role):
    allowed = {r.value for r in roles}

    async def guard(request: Request, rbac: RBACService = Depends(get_rbac)) -> AuditContext:
        context = require_actor(request)
        if context.role not in allowed:
            raise _deny(
                context,
                "Insufficient role",
                required=" | ".join(sorted(allowed)),
                current=context.role,
            )
        _attach(request, rbac, context, None)
        return context

    return guard


def require_access_level(resource: str, minimum: AccessLevel):
    async def guard(request: Request, rbac: RBACService = Depends(get_rbac)) -> AuditContext:
        context = require_actor(request)
        level = rbac.get_access_level(context.role, resource)
        if level < minimum:
            raise _deny(
                context,
                "Insufficient access level",
                required=minimum.name,
                current=level.name,
            )
        _attach(request, rbac, context, resource)
        return context

    return guard


def check_resource_ownership(
    load: ResourceLoader,
    *,
    id_param: str,
    bypass_roles: Iterable[Role] = (Role.ADMIN, Role.MANAGER),
    bypass_permission: Optional[str] = None,
):
    """
    Only the owner may pass, unless the role is in bypass_roles or holds bypass_permission.
    The loaded resource is left on request.state.resource; a missing one is a 404.
    """
    bypass = {r.value for r in bypass_roles}

    async def guard(
        request: Request,
        container: AppContainer = Depends(get_container),
    ) -> AuditContext:
        context = require_actor(request)
        rbac = container.rbac
        resource = await load(container, request.path_params[id_param])
        if resource is None:
            raise RecordNotFoundError("Resource not found")
        request.state.resource = resource
        if context.role in bypass or (
            bypass_permission is not None and rbac.has_permission(context.role, bypass_permission)
        ):
            _attach(request, rbac, context, None)
            return context
        if not rbac.is_resource_owner(context.actor_id, resource):
            raise _deny(context, "Not authorized: You can only access your own resources")
        _attach(request, rbac, context, None)
        return context

    return guard
