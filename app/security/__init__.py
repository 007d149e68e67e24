"""Security: permission matrix, RBAC helper, typed security errors. No FastAPI."""

from app.security.permissions import ROLE_PERMISSIONS, AccessLevel, Role
from app.security.rbac import PermissionCheck, RBACService

__all__ = [
    "AccessLevel",
    "PermissionCheck",
    "RBACService",
    "ROLE_PERMISSIONS",
    "Role",
]
