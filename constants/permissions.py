# constants/permissions.py

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, NamedTuple, Optional, Tuple


class Role(str, Enum):
    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


# Rank used for "at least this role" checks
ROLE_HIERARCHY: Mapping[Role, int] = MappingProxyType(
    {
        Role.USER: 1,
        Role.MANAGER: 2,
        Role.ADMIN: 3,
    }
)


class Permission(NamedTuple):
    resource: str
    action: str

    def __str__(self) -> str:
        return f"{self.resource}:{self.action}"


def _perms(*pairs: Tuple[str, str]) -> FrozenSet[Permission]:
    return frozenset(Permission(resource, action) for resource, action in pairs)


# Mapping: Role → Permissions. Each role's set is curated on its own;
# higher roles do not inherit from lower ones.
ROLE_PERMISSIONS: Mapping[Role, FrozenSet[Permission]] = MappingProxyType(
    {
        # Customer permissions
        Role.USER: _perms(
            ("profile", "read"),
            ("profile", "update"),
            ("orders", "read"),
            ("cart", "manage"),
            ("wishlist", "manage"),
            ("addresses", "manage"),
            ("reviews", "create"),
            ("reviews", "update"),
        ),
        # Product and order management, basic dashboard, no reports
        Role.MANAGER: _perms(
            ("products", "read"),
            ("products", "create"),
            ("products", "update"),
            ("products", "delete"),
            ("categories", "read"),
            ("categories", "create"),
            ("categories", "update"),
            ("orders", "read"),
            ("orders", "update"),
            ("customers", "read"),
            ("inventory", "manage"),
            ("dashboard", "read"),
        ),
        # Full access including reports and user management
        Role.ADMIN: _perms(
            ("products", "read"),
            ("products", "create"),
            ("products", "update"),
            ("products", "delete"),
            ("categories", "read"),
            ("categories", "create"),
            ("categories", "update"),
            ("categories", "delete"),
            ("orders", "read"),
            ("orders", "update"),
            ("orders", "delete"),
            ("customers", "read"),
            ("customers", "update"),
            ("customers", "delete"),
            ("users", "read"),
            ("users", "create"),
            ("users", "update"),
            ("users", "delete"),
            ("reports", "read"),
            ("analytics", "read"),
            ("dashboard", "read"),
            ("settings", "read"),
            ("settings", "update"),
            ("inventory", "manage"),
            ("roles", "manage"),
        ),
    }
)


@dataclass(frozen=True)
class NavigationItem:
    name: str
    href: str
    icon: str
    required_permission: Optional[Permission] = None
    admin_only: bool = False


# Admin sidebar, in display order. Every entry needs a staff permission;
# customers hold orders:read for their own orders, so Orders keys on update.
NAVIGATION_ITEMS: Tuple[NavigationItem, ...] = (
    NavigationItem(
        name="Dashboard",
        href="/admin/dashboard",
        icon="HomeIcon",
        required_permission=Permission("dashboard", "read"),
    ),
    NavigationItem(
        name="Products",
        href="/admin/products",
        icon="ShoppingBagIcon",
        required_permission=Permission("products", "read"),
    ),
    NavigationItem(
        name="Orders",
        href="/admin/orders",
        icon="ChartBarIcon",
        required_permission=Permission("orders", "update"),
    ),
    NavigationItem(
        name="Customers",
        href="/admin/customers",
        icon="UserGroupIcon",
        required_permission=Permission("customers", "read"),
    ),
    NavigationItem(
        name="Reports",
        href="/admin/reports",
        icon="DocumentChartBarIcon",
        required_permission=Permission("reports", "read"),
        admin_only=True,
    ),
    NavigationItem(
        name="Users",
        href="/admin/users",
        icon="UsersIcon",
        required_permission=Permission("users", "read"),
        admin_only=True,
    ),
    NavigationItem(
        name="Settings",
        href="/admin/settings",
        icon="CogIcon",
        required_permission=Permission("settings", "read"),
        admin_only=True,
    ),
)
