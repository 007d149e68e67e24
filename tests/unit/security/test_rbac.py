"""Security tests: permission matrix, access levels, ownership and the :own/:all policy."""

import pytest

from app.security.exceptions import AuthorizationError
from app.security.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS, AccessLevel
from app.security.rbac import RBACService, Role


@pytest.fixture
def rbac():
    return RBACService()


# Permission matrix excerpt:
# Role      booking:create  booking:read:all  booking:restore  audit:export  system:restore
# CUSTOMER  ✓               ✗                 ✗                ✗             ✗
# HOST      ✗               ✗                 ✗                ✗             ✗
# MANAGER   ✗               ✓                 ✓                ✓             ✗
# SUPPORT   ✗               ✓                 ✗                ✗             ✗
# ADMIN     ✓               ✓                 ✓                ✓             ✓
# SYSTEM    ✓               ✓                 ✗                ✗             ✗


def test_every_granted_permission_is_known():
    for role, granted in ROLE_PERMISSIONS.items():
        assert granted <= ALL_PERMISSIONS, role


def test_matrix_is_read_only():
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS[Role.CUSTOMER] = frozenset()  # type: ignore[index]


def test_customer_permissions(rbac):
    assert rbac.has_permission(Role.CUSTOMER, "booking:create")
    assert rbac.has_permission(Role.CUSTOMER, "booking:read:own")
    assert not rbac.has_permission(Role.CUSTOMER, "booking:read:all")
    assert not rbac.has_permission(Role.CUSTOMER, "audit:export")


def test_admin_only_role_with_system_restore(rbac):
    holders = [r for r in Role if rbac.has_permission(r, "system:restore")]
    assert holders == [Role.ADMIN]


def test_string_roles_accepted(rbac):
    assert rbac.has_permission("manager", "booking:restore")


def test_unknown_role_has_nothing(rbac):
    assert rbac.get_permissions("pirate") == frozenset()
    assert not rbac.has_permission("pirate", "booking:create")
    assert rbac.get_access_level("pirate", "booking") == AccessLevel.NONE


def test_has_any_and_all(rbac):
    assert rbac.has_any_permission(Role.HOST, ["booking:read:all", "booking:read"])
    assert not rbac.has_any_permission(Role.HOST, [])
    assert rbac.has_all_permissions(Role.MANAGER, ["audit:read:all", "audit:export"])
    assert not rbac.has_all_permissions(Role.SUPPORT, ["audit:read:all", "audit:export"])
    assert rbac.has_all_permissions(Role.SUPPORT, [])


@pytest.mark.parametrize(
    "role,resource,expected",
    [
        (Role.ADMIN, "booking", AccessLevel.FULL),
        (Role.MANAGER, "booking", AccessLevel.FULL),
        (Role.CUSTOMER, "booking", AccessLevel.DELETE),
        (Role.SUPPORT, "booking", AccessLevel.UPDATE),
        (Role.SYSTEM, "booking", AccessLevel.UPDATE),
        (Role.HOST, "property", AccessLevel.DELETE),
        (Role.CUSTOMER, "property", AccessLevel.READ),
        (Role.CUSTOMER, "promotion", AccessLevel.NONE),
        (Role.MANAGER, "promotion", AccessLevel.DELETE),
        (Role.SUPPORT, "promotion", AccessLevel.NONE),
    ],
)
def test_access_level_priority_chain(rbac, role, resource, expected):
    assert rbac.get_access_level(role, resource) == expected


def test_unscoped_update_does_not_count_as_update_level(rbac):
    """Host holds booking:update and booking:read but neither :own nor :all update."""
    assert rbac.get_access_level(Role.HOST, "booking") == AccessLevel.READ


def test_is_resource_owner_checks_conventional_fields(rbac):
    assert rbac.is_resource_owner("u1", {"user_id": "u1"})
    assert rbac.is_resource_owner("u1", {"owner_id": "u1"})
    assert rbac.is_resource_owner("u1", {"created_by": "u1"})
    assert rbac.is_resource_owner("u1", {"id": "u1"})
    assert not rbac.is_resource_owner("u1", {"user_id": "u2", "created_by": "u3"})


def test_is_resource_owner_compares_as_strings(rbac):
    assert rbac.is_resource_owner("42", {"user_id": 42})


def test_is_resource_owner_handles_objects_and_missing(rbac):
    class Thing:
        owner_id = "u7"

    assert rbac.is_resource_owner("u7", Thing())
    assert not rbac.is_resource_owner("u7", None)
    assert not rbac.is_resource_owner(None, {"user_id": "u7"})


def test_validate_own_permission_for_owner(rbac):
    check = rbac.validate_permission(Role.CUSTOMER, "booking:update:own", "u1", "u1")
    assert check.allowed
    assert check.reason is None
    assert check.user_role == "customer"
    assert check.access_level == AccessLevel.DELETE


def test_validate_own_permission_for_non_owner(rbac):
    check = rbac.validate_permission(Role.CUSTOMER, "booking:update:own", "u1", "u2")
    assert not check.allowed
    assert check.reason == "Not authorized: You can only access your own resources"
    assert check.required_permission == "booking:update:own"


def test_validate_all_variant_supersedes_own(rbac):
    """Support holds booking:update:all but not :own; ownership is irrelevant."""
    check = rbac.validate_permission(Role.SUPPORT, "booking:update:own", "u1", "u2")
    assert check.allowed


def test_validate_without_ids_skips_ownership(rbac):
    assert rbac.validate_permission(Role.CUSTOMER, "booking:update:own").allowed


def test_validate_missing_permission(rbac):
    check = rbac.validate_permission(Role.HOST, "booking:delete:own", "u1", "u1")
    assert not check.allowed
    assert check.reason == "Insufficient permissions"


def test_check_permission_raises_with_details(rbac):
    with pytest.raises(AuthorizationError) as info:
        rbac.check_permission(Role.CUSTOMER, "audit:export")
    assert info.value.to_dict() == {
        "detail": "Insufficient permissions",
        "required": "audit:export",
        "user_role": "customer",
    }


def test_check_permission_passes(rbac):
    rbac.check_permission(Role.ADMIN, "system:restore")
