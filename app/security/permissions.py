"""Static role -> permission matrix. Loaded once at import, never mutated."""

from enum import Enum, IntEnum
from types import MappingProxyType
from typing import FrozenSet, Mapping


class Role(str, Enum):
    CUSTOMER = "customer"
    HOST = "host"
    MANAGER = "manager"
    SUPPORT = "support"
    ADMIN = "admin"
    SYSTEM = "system"


class AccessLevel(IntEnum):
    """Coarse ordinal derived from which permissions a role holds for a resource."""

    NONE = 0
    READ = 1
    WRITE = 2
    UPDATE = 3
    DELETE = 4
    FULL = 5


# Permission strings are "resource:action[:scope]".
ALL_PERMISSIONS: FrozenSet[str] = frozenset(
    {
        # Booking
        "booking:create",
        "booking:read",
        "booking:read:own",
        "booking:read:all",
        "booking:update",
        "booking:update:own",
        "booking:update:all",
        "booking:delete",
        "booking:delete:own",
        "booking:delete:all",
        "booking:restore",
        # Property
        "property:create",
        "property:read",
        "property:read:own",
        "property:read:all",
        "property:update",
        "property:update:own",
        "property:update:all",
        "property:delete",
        "property:approve",
        # User
        "user:create",
        "user:read",
        "user:read:own",
        "user:read:all",
        "user:update",
        "user:update:own",
        "user:update:all",
        "user:delete",
        "user:verify",
        "user:change-role",
        # Payment
        "payment:process",
        "payment:refund",
        "payment:view",
        "payment:view:all",
        # Review
        "review:create",
        "review:read",
        "review:update:own",
        "review:delete:own",
        "review:delete:all",
        "review:flag",
        "review:moderate",
        # Audit
        "audit:read",
        "audit:read:own",
        "audit:read:all",
        "audit:export",
        # System
        "system:settings",
        "system:backup",
        "system:restore",
        "system:logs",
        # Promotion
        "promotion:create",
        "promotion:update",
        "promotion:delete",
        "promotion:view:all",
        # Report
        "report:view",
        "report:export",
        "report:financial",
    }
)


ROLE_PERMISSIONS: Mapping[Role, FrozenSet[str]] = MappingProxyType(
    {
        Role.CUSTOMER: frozenset(
            {
                "booking:create",
                "booking:read:own",
                "booking:update:own",
                "booking:delete:own",
                "property:read",
                "user:read:own",
                "user:update:own",
                "payment:process",
                "payment:view",
                "review:create",
                "review:read",
                "review:update:own",
                "review:delete:own",
                "audit:read:own",
            }
        ),
        Role.HOST: frozenset(
            {
                "booking:read",
                "booking:update",
                "property:create",
                "property:read:own",
                "property:read:all",
                "property:update:own",
                "property:delete",
                "user:read:own",
                "user:update:own",
                "payment:view",
                "review:read",
                "review:flag",
                "audit:read:own",
                "report:view",
            }
        ),
        Role.MANAGER: frozenset(
            {
                "booking:read:all",
                "booking:update:all",
                "booking:delete:all",
                "booking:restore",
                "property:read:all",
                "property:update:all",
                "property:approve",
                "user:read:all",
                "user:update:all",
                "user:verify",
                "payment:process",
                "payment:refund",
                "payment:view:all",
                "review:read",
                "review:moderate",
                "review:delete:all",
                "audit:read:all",
                "audit:export",
                "promotion:create",
                "promotion:update",
                "promotion:delete",
                "promotion:view:all",
                "report:view",
                "report:export",
                "report:financial",
            }
        ),
        Role.SUPPORT: frozenset(
            {
                "booking:read:all",
                "booking:update:all",
                "property:read:all",
                "user:read:all",
                "user:update",
                "user:verify",
                "payment:view:all",
                "review:read",
                "review:flag",
                "review:moderate",
                "audit:read:all",
                "report:view",
            }
        ),
        Role.ADMIN: frozenset(
            {
                "booking:create",
                "booking:read:all",
                "booking:update:all",
                "booking:delete:all",
                "booking:restore",
                "property:create",
                "property:read:all",
                "property:update:all",
                "property:delete",
                "property:approve",
                "user:create",
                "user:read:all",
                "user:update:all",
                "user:delete",
                "user:verify",
                "user:change-role",
                "payment:process",
                "payment:refund",
                "payment:view:all",
                "review:create",
                "review:read",
                "review:delete:all",
                "review:moderate",
                "audit:read:all",
                "audit:export",
                "system:settings",
                "system:backup",
                "system:restore",
                "system:logs",
                "promotion:create",
                "promotion:update",
                "promotion:delete",
                "promotion:view:all",
                "report:view",
                "report:export",
                "report:financial",
            }
        ),
        # Automated processes (seeders, schedulers, the retention sweep)
        Role.SYSTEM: frozenset(
            {
                "booking:create",
                "booking:read:all",
                "booking:update:all",
                "system:backup",
                "system:logs",
            }
        ),
    }
)


def permissions_for(role: Role) -> FrozenSet[str]:
    """Effective permission set for a role; empty for anything unknown."""
    return ROLE_PERMISSIONS.get(role, frozenset())
