"""
Unit tests for RBAC permission system
"""

import pytest
from restopos.core.errors import PermissionDenied
from restopos.core.permissions import (
    Capabilities,
    Permission,
    get_permissions_for_role,
    has_permission,
)


def test_get_permissions_for_role():
    """Test permission retrieval for all roles"""
    # Admin has all permissions
    admin_perms = get_permissions_for_role("admin")
    assert admin_perms == set(Permission)

    # Cashier can discount and redeem but not adjust stock
    cashier_perms = get_permissions_for_role("cashier")
    assert Permission.ORDER_DISCOUNT in cashier_perms
    assert Permission.LOYALTY_REDEEM in cashier_perms
    assert Permission.STOCK_ADJUST not in cashier_perms

    # Waiter takes orders without discounts
    waiter_perms = get_permissions_for_role("waiter")
    assert Permission.ORDER_CREATE in waiter_perms
    assert Permission.ORDER_DISCOUNT not in waiter_perms

    # Unknown roles get nothing
    assert get_permissions_for_role("intruder") == set()
    assert get_permissions_for_role(None) == set()


def test_roles_are_case_insensitive():
    assert get_permissions_for_role("Manager") == get_permissions_for_role("manager")


def test_has_permission():
    """Test permission checking logic"""
    kitchen_perms = get_permissions_for_role("kitchen")

    assert has_permission(Permission.KITCHEN_UPDATE, kitchen_perms)
    assert not has_permission(Permission.ORDER_CREATE, kitchen_perms)


def test_capabilities():
    cashier = Capabilities.for_role("cashier")
    assert cashier.may_apply_discount
    assert cashier.may_redeem_loyalty

    waiter = Capabilities.for_role("waiter")
    assert not waiter.may_apply_discount
    assert not waiter.may_redeem_loyalty

    with pytest.raises(PermissionDenied):
        waiter.require(Permission.ORDER_DISCOUNT)

    assert Capabilities.all().may_apply_discount
    assert not Capabilities().can(Permission.ORDER_VIEW)
