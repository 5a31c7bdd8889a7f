"""
Role-based access decisions for the back-office.

Every function here is pure: the permission table and navigation list are
read-only, so a single ``PermissionPolicy`` can be shared by all requests.
Unknown or malformed roles never raise; they are denied.
"""

from typing import Callable, FrozenSet, List, Mapping, Optional, Sequence, Union

from constants.permissions import (
    NAVIGATION_ITEMS,
    ROLE_HIERARCHY,
    ROLE_PERMISSIONS,
    NavigationItem,
    Permission,
    Role,
)

RoleLike = Union[Role, str, None]
RolePredicate = Callable[[RoleLike], bool]


def coerce_role(value: RoleLike) -> Optional[Role]:
    """Return the ``Role`` named by ``value``, or None when it names no role."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value)
        except ValueError:
            return None
    return None


class PermissionPolicy:
    """
    Answers "can role R do A on resource X" against a fixed permission table.

    The default instance wraps the module constants; tests and alternative
    deployments can build their own and hand it to the request guards.
    """

    def __init__(
        self,
        role_permissions: Mapping[Role, FrozenSet[Permission]] = ROLE_PERMISSIONS,
        navigation_items: Sequence[NavigationItem] = NAVIGATION_ITEMS,
        role_hierarchy: Mapping[Role, int] = ROLE_HIERARCHY,
    ):
        self._role_permissions = role_permissions
        self._navigation_items = tuple(navigation_items)
        self._role_hierarchy = role_hierarchy

    def permissions_for(self, role: RoleLike) -> FrozenSet[Permission]:
        resolved = coerce_role(role)
        if resolved is None:
            return frozenset()
        return self._role_permissions.get(resolved, frozenset())

    def has_permission(self, role: RoleLike, resource: str, action: str) -> bool:
        # Exact, case-sensitive match; no wildcard actions.
        return Permission(resource, action) in self.permissions_for(role)

    def has_role_or_higher(self, actual: RoleLike, required: RoleLike) -> bool:
        actual_role = coerce_role(actual)
        required_role = coerce_role(required)
        if actual_role is None or required_role is None:
            return False
        actual_rank = self._role_hierarchy.get(actual_role)
        required_rank = self._role_hierarchy.get(required_role)
        if actual_rank is None or required_rank is None:
            return False
        return actual_rank >= required_rank

    def can_access_nav_item(self, role: RoleLike, item: NavigationItem) -> bool:
        if item.admin_only and coerce_role(role) is not Role.ADMIN:
            return False

        if item.required_permission is not None:
            return self.has_permission(
                role,
                item.required_permission.resource,
                item.required_permission.action,
            )

        return True

    def get_accessible_nav_items(self, role: RoleLike) -> List[NavigationItem]:
        return [item for item in self._navigation_items if self.can_access_nav_item(role, item)]


default_policy = PermissionPolicy()


def permissions_for(role: RoleLike) -> FrozenSet[Permission]:
    return default_policy.permissions_for(role)


def has_permission(role: RoleLike, resource: str, action: str) -> bool:
    return default_policy.has_permission(role, resource, action)


def has_role_or_higher(actual: RoleLike, required: RoleLike) -> bool:
    return default_policy.has_role_or_higher(actual, required)


def can_access_nav_item(role: RoleLike, item: NavigationItem) -> bool:
    return default_policy.can_access_nav_item(role, item)


def get_accessible_nav_items(role: RoleLike) -> List[NavigationItem]:
    return default_policy.get_accessible_nav_items(role)


# Predicate builders, for callers that hold a role and want a yes/no check


def require_permission(resource: str, action: str) -> RolePredicate:
    return lambda role: has_permission(role, resource, action)


def require_role(required: RoleLike) -> RolePredicate:
    return lambda role: has_role_or_higher(role, required)


def require_admin() -> RolePredicate:
    return lambda role: coerce_role(role) is Role.ADMIN


def require_manager_or_admin() -> RolePredicate:
    return lambda role: coerce_role(role) in (Role.MANAGER, Role.ADMIN)
