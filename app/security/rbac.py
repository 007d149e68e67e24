"""Role-based access control over the static permission matrix. No FastAPI."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from app.security.exceptions import AuthorizationError
from app.security.permissions import AccessLevel, Role, permissions_for

RoleLike = Union[Role, str]

# Fields conventionally holding the owning actor's id, checked in this order.
OWNER_FIELDS = ("user_id", "owner_id", "created_by", "id")


@dataclass(frozen=True)
class PermissionCheck:
    """Outcome of validate_permission. reason is set only when denied."""

    allowed: bool
    required_permission: str
    user_role: Optional[str]
    reason: Optional[str] = None
    access_level: Optional[AccessLevel] = None


def coerce_role(role: RoleLike) -> Optional[Role]:
    """Role from enum or raw string; None for unknown values."""
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def _field(resource: Any, name: str) -> Any:
    if isinstance(resource, dict):
        return resource.get(name)
    return getattr(resource, name, None)


class RBACService:
    """Permission lookups and ownership checks. Stateless; safe to share."""

    def get_permissions(self, role: RoleLike) -> frozenset:
        resolved = coerce_role(role)
        if resolved is None:
            return frozenset()
        return permissions_for(resolved)

    def has_permission(self, role: RoleLike, permission: str) -> bool:
        return permission in self.get_permissions(role)

    def has_any_permission(self, role: RoleLike, permissions: Iterable[str]) -> bool:
        granted = self.get_permissions(role)
        return any(p in granted for p in permissions)

    def has_all_permissions(self, role: RoleLike, permissions: Iterable[str]) -> bool:
        granted = self.get_permissions(role)
        return all(p in granted for p in permissions)

    def get_access_level(self, role: RoleLike, resource: str) -> AccessLevel:
        """
        Priority chain, first match wins:
        FULL > DELETE > UPDATE > WRITE > READ > NONE.
        """
        granted = self.get_permissions(role)

        def held(*actions: str) -> bool:
            return any(f"{resource}:{a}" in granted for a in actions)

        if held("delete:all"):
            return AccessLevel.FULL
        if held("delete", "delete:own"):
            return AccessLevel.DELETE
        if held("update:all", "update:own"):
            return AccessLevel.UPDATE
        if held("create"):
            return AccessLevel.WRITE
        if held("read:all", "read:own", "read"):
            return AccessLevel.READ
        return AccessLevel.NONE

    def is_resource_owner(self, actor_id: Optional[str], resource: Any) -> bool:
        """True iff any conventional owner field string-equals actor_id."""
        if resource is None or actor_id is None:
            return False
        actor = str(actor_id)
        for name in OWNER_FIELDS:
            value = _field(resource, name)
            if value is not None and str(value) == actor:
                return True
        return False

    def validate_permission(
        self,
        role: RoleLike,
        permission: str,
        resource_owner_id: Optional[str] = None,
        requester_id: Optional[str] = None,
    ) -> PermissionCheck:
        """
        Check a permission with the ":own" policy applied: an ":own" permission is
        satisfied only for the owner, unless the role also holds the ":all" variant.
        Ownership is only enforced when both ids are supplied.
        """
        resolved = coerce_role(role)
        role_name = resolved.value if resolved else str(role)
        resource = permission.split(":")[0]
        level = self.get_access_level(role, resource)

        if permission.endswith(":own"):
            all_variant = permission[: -len(":own")] + ":all"
            if self.has_permission(role, all_variant):
                return PermissionCheck(
                    allowed=True,
                    required_permission=permission,
                    user_role=role_name,
                    access_level=level,
                )
            if (
                resource_owner_id is not None
                and requester_id is not None
                and str(resource_owner_id) != str(requester_id)
            ):
                return PermissionCheck(
                    allowed=False,
                    required_permission=permission,
                    user_role=role_name,
                    reason="Not authorized: You can only access your own resources",
                    access_level=level,
                )

        allowed = self.has_permission(role, permission)
        return PermissionCheck(
            allowed=allowed,
            required_permission=permission,
            user_role=role_name,
            reason=None if allowed else "Insufficient permissions",
            access_level=level,
        )

    def check_permission(self, role: RoleLike, permission: str) -> None:
        """Raises AuthorizationError if role does not hold permission."""
        if not self.has_permission(role, permission):
            resolved = coerce_role(role)
            raise AuthorizationError(
                "Insufficient permissions",
                required=permission,
                user_role=resolved.value if resolved else str(role),
            )
