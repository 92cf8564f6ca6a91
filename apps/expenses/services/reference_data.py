"""Payment methods, expense categories and suppliers."""

import logging

from django.db import transaction

from apps.core.numbering import create_with_generated_code
from apps.core.services import apply_changes, ensure_unique, get_for_update
from apps.expenses.models import (
    CATEGORY_CODE_PREFIX,
    ExpenseCategory,
    ExpenseSupplier,
    PaymentMethod,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Payment methods
# =============================================================================

@transaction.atomic
def create_payment_method(*, user=None, **data) -> PaymentMethod:
    """
    Raises:
        DuplicateResourceError: If the name or code is already used
    """
    for field in ('name', 'code'):
        ensure_unique(PaymentMethod, entity='PaymentMethod', field=field, value=data.get(field))

    method = PaymentMethod.objects.create(created_by=user, updated_by=user, **data)
    logger.info("Created payment method %s", method.code)
    return method


@transaction.atomic
def update_payment_method(*, payment_method_id: int, user=None, **changes) -> PaymentMethod:
    method = get_for_update(PaymentMethod, payment_method_id, 'PaymentMethod')
    for field in ('name', 'code'):
        if field in changes:
            ensure_unique(PaymentMethod, entity='PaymentMethod', field=field, value=changes[field], exclude_pk=method.pk)

    apply_changes(method, changes, user)
    logger.info("Updated payment method %s", method.code)
    return method


# =============================================================================
# Expense categories
# =============================================================================

def create_expense_category(*, user=None, **data) -> ExpenseCategory:
    """
    Create a category with the next CAT-DEP-NNN code.

    Raises:
        DuplicateResourceError: If the name is already used
        ConfigurationFailureError: If no free code can be generated
    """
    data.pop('code', None)
    ensure_unique(ExpenseCategory, entity='ExpenseCategory', field='name', value=data.get('name'))

    category = create_with_generated_code(
        ExpenseCategory,
        'code',
        CATEGORY_CODE_PREFIX,
        lambda code: ExpenseCategory.objects.create(code=code, created_by=user, updated_by=user, **data),
    )
    logger.info("Created expense category %s (%s)", category.name, category.code)
    return category


@transaction.atomic
def update_expense_category(*, category_id: int, user=None, **changes) -> ExpenseCategory:
    category = get_for_update(ExpenseCategory, category_id, 'ExpenseCategory')
    changes.pop('code', None)
    if 'name' in changes:
        ensure_unique(ExpenseCategory, entity='ExpenseCategory', field='name', value=changes['name'], exclude_pk=category.pk)

    apply_changes(category, changes, user)
    logger.info("Updated expense category %s", category.code)
    return category


# =============================================================================
# Suppliers
# =============================================================================

@transaction.atomic
def create_expense_supplier(*, user=None, **data) -> ExpenseSupplier:
    supplier = ExpenseSupplier.objects.create(created_by=user, updated_by=user, **data)
    logger.info("Created expense supplier %s", supplier.name)
    return supplier


@transaction.atomic
def update_expense_supplier(*, supplier_id: int, user=None, **changes) -> ExpenseSupplier:
    supplier = get_for_update(ExpenseSupplier, supplier_id, 'ExpenseSupplier')
    apply_changes(supplier, changes, user)
    logger.info("Updated expense supplier %s", supplier.name)
    return supplier
