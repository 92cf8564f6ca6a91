"""
Role-based authorization policy.

A single table maps every named operation to the roles allowed to perform it.
Views only declare which operation an action is (see
``apps.core.permissions.OperationPermission``); the decision lives here.

Operation names are ``<domain>.<verb>``:

    reference.*   companies, ships, operations, payment methods,
                  expense categories and suppliers
    invoice.*     invoices, their line items and payments
    expense.*     expenses
    user.*        user administration
"""
import logging
from typing import Iterable

from apps.accounts.models import RoleName

from .exceptions import ConfigurationFailureError

logger = logging.getLogger(__name__)

READERS = frozenset({
    RoleName.VIEWER, RoleName.USER, RoleName.OPERATOR, RoleName.MANAGER, RoleName.ADMIN,
})
WRITERS = frozenset({RoleName.USER, RoleName.OPERATOR, RoleName.MANAGER, RoleName.ADMIN})
MANAGERS = frozenset({RoleName.MANAGER, RoleName.ADMIN})
ADMINS = frozenset({RoleName.ADMIN})

POLICY = {
    'reference.read': READERS,
    'reference.write': WRITERS,
    'reference.delete': MANAGERS,
    'reference.admin': ADMINS,

    'invoice.read': READERS,
    'invoice.write': WRITERS,
    'invoice.delete': MANAGERS,
    'invoice.transition': MANAGERS,
    'invoice.admin': ADMINS,

    'expense.read': READERS,
    'expense.write': WRITERS,
    'expense.submit': WRITERS,
    'expense.delete': MANAGERS,
    'expense.transition': MANAGERS,

    'user.read': MANAGERS,
    'user.manage': MANAGERS,
    'user.admin': ADMINS,
}


def is_allowed(roles: Iterable[str], operation: str) -> bool:
    """
    Return True when any of ``roles`` may perform ``operation``.

    Raises:
        ConfigurationFailureError: If the operation is not in the policy table
    """
    try:
        allowed = POLICY[operation]
    except KeyError:
        logger.error("Authorization requested for unknown operation %r", operation)
        raise ConfigurationFailureError(f"Unknown operation: {operation}")
    return any(role in allowed for role in roles)


def user_can(user, operation: str) -> bool:
    """Policy check for a user object; superusers bypass the table."""
    if user is None or not user.is_authenticated or not user.is_active:
        return False
    if user.is_superuser:
        return True
    return is_allowed(user.role_names(), operation)
