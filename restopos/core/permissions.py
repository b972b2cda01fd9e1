"""
RBAC (Role-Based Access Control) permission system

The API edge turns the caller's role into a `Capabilities` value once;
services receive that value explicitly instead of looking up the user.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Set

from restopos.core.errors import PermissionDenied


class Permission(str, Enum):
    """Permission definitions"""
    # Order permissions
    ORDER_CREATE = "order:create"
    ORDER_VIEW = "order:view"
    ORDER_UPDATE_STATUS = "order:update_status"
    ORDER_DISCOUNT = "order:discount"

    # Kitchen permissions
    KITCHEN_UPDATE = "kitchen:update"

    # Loyalty permissions
    LOYALTY_REDEEM = "loyalty:redeem"
    LOYALTY_ADJUST = "loyalty:adjust"

    # Stock permissions
    STOCK_VIEW = "stock:view"
    STOCK_ADJUST = "stock:adjust"


# Role permission mapping
ROLE_PERMISSIONS = {
    "admin": set(Permission),
    "manager": {
        # Managers have all permissions
        Permission.ORDER_CREATE,
        Permission.ORDER_VIEW,
        Permission.ORDER_UPDATE_STATUS,
        Permission.ORDER_DISCOUNT,
        Permission.KITCHEN_UPDATE,
        Permission.LOYALTY_REDEEM,
        Permission.LOYALTY_ADJUST,
        Permission.STOCK_VIEW,
        Permission.STOCK_ADJUST,
    },
    "cashier": {
        # Cashiers ring up orders, apply codes and redeem points
        Permission.ORDER_CREATE,
        Permission.ORDER_VIEW,
        Permission.ORDER_UPDATE_STATUS,
        Permission.ORDER_DISCOUNT,
        Permission.LOYALTY_REDEEM,
        Permission.STOCK_VIEW,
    },
    "waiter": {
        # Waiters take orders but cannot discount them
        Permission.ORDER_CREATE,
        Permission.ORDER_VIEW,
        Permission.ORDER_UPDATE_STATUS,
        Permission.STOCK_VIEW,
    },
    "kitchen": {
        # Kitchen staff read orders and move them through preparation
        Permission.ORDER_VIEW,
        Permission.KITCHEN_UPDATE,
    },
}


def get_permissions_for_role(role: str) -> Set[Permission]:
    """Get permissions for a given role"""
    return ROLE_PERMISSIONS.get((role or "").lower(), set())


def has_permission(required_permission: Permission, user_permissions: Set[Permission]) -> bool:
    """Check if user has required permission"""
    return required_permission in user_permissions


@dataclass(frozen=True)
class Capabilities:
    """What the caller may do, resolved once per request"""
    permissions: FrozenSet[Permission] = frozenset()

    @classmethod
    def for_role(cls, role: str) -> "Capabilities":
        return cls(frozenset(get_permissions_for_role(role)))

    @classmethod
    def all(cls) -> "Capabilities":
        return cls(frozenset(Permission))

    def can(self, permission: Permission) -> bool:
        return has_permission(permission, self.permissions)

    def require(self, permission: Permission) -> None:
        if not self.can(permission):
            raise PermissionDenied(f"Permission required: {permission.value}")

    @property
    def may_apply_discount(self) -> bool:
        return self.can(Permission.ORDER_DISCOUNT)

    @property
    def may_redeem_loyalty(self) -> bool:
        return self.can(Permission.LOYALTY_REDEEM)
