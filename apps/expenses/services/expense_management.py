"""Expense CRUD service."""

import logging

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import BusinessRuleError, ResourceNotFoundError, ValidationFailureError
from apps.core.numbering import create_with_generated_code
from apps.core.services import apply_changes, ensure_unique, get_for_update
from apps.expenses.models import (
    EXPENSE_NUMBER_PREFIX,
    Currency,
    Expense,
    fill_converted_amounts,
)
from apps.expenses.workflow import is_deletable, is_editable

logger = logging.getLogger(__name__)

AMOUNT_FIELDS = ('currency', 'amount_xof', 'amount_eur', 'exchange_rate')


def expense_number_prefix(day=None) -> str:
    day = day or timezone.localdate()
    return f"{EXPENSE_NUMBER_PREFIX}-{day:%Y%m%d}"


def _resolve_amounts(values, changed=()):
    """
    Fill the converted amount and check that a positive XOF amount results.

    On update, an amount previously derived from the other currency is
    dropped and derived again when its source changed.
    """
    currency = values.get('currency') or Currency.XOF
    amount_xof = values.get('amount_xof')
    amount_eur = values.get('amount_eur')

    source_changed = any(field in changed for field in ('amount_xof', 'amount_eur', 'exchange_rate', 'currency'))
    if source_changed:
        if currency == Currency.XOF and 'amount_eur' not in changed:
            amount_eur = None
        elif currency == Currency.EUR and 'amount_xof' not in changed:
            amount_xof = None

    amount_xof, amount_eur = fill_converted_amounts(
        currency=currency,
        amount_xof=amount_xof,
        amount_eur=amount_eur,
        exchange_rate=values.get('exchange_rate'),
    )

    if amount_xof is None or amount_xof <= 0:
        raise ValidationFailureError(
            "A positive XOF amount is required (or an EUR amount with an exchange rate)",
            details={'amount_xof': 'Must be greater than 0.'},
        )
    return amount_xof, amount_eur


def _check_references(data):
    for field in ('category', 'payment_method', 'supplier'):
        related = data.get(field)
        if related is not None and not related.active:
            raise BusinessRuleError(f"{related._meta.verbose_name.capitalize()} '{related}' is inactive")


def create_expense(*, user=None, number: str = '', **data) -> Expense:
    """
    Create an expense in BROUILLON status.

    ``number`` defaults to the next ``DEP-YYYYMMDD-NNN`` for today.

    Raises:
        ValidationFailureError: If no positive XOF amount can be established
        BusinessRuleError: If the category, supplier or payment method is inactive
        DuplicateResourceError: If an explicit number is already used
    """
    _check_references(data)
    data['amount_xof'], data['amount_eur'] = _resolve_amounts(data)
    data.pop('status', None)

    def insert(candidate):
        return Expense.objects.create(number=candidate, created_by=user, updated_by=user, **data)

    if number:
        ensure_unique(Expense, entity='Expense', field='number', value=number)
        with transaction.atomic():
            expense = insert(number)
    else:
        expense = create_with_generated_code(Expense, 'number', expense_number_prefix(), insert)

    logger.info("Created expense %s (%s XOF)", expense.number, expense.amount_xof)
    return expense


@transaction.atomic
def update_expense(*, expense_id: int, user=None, **changes) -> Expense:
    """
    Update an expense that is still BROUILLON or EN_ATTENTE.

    Status changes go through the workflow services, never through here.

    Raises:
        ResourceNotFoundError: If expense does not exist
        BusinessRuleError: If the expense is no longer editable
    """
    expense = get_for_update(Expense, expense_id, 'Expense')
    if not is_editable(expense):
        raise BusinessRuleError(f"Expense {expense.number} cannot be modified in status {expense.status}")

    changes.pop('status', None)
    if 'number' in changes:
        if changes['number']:
            ensure_unique(Expense, entity='Expense', field='number', value=changes['number'], exclude_pk=expense.pk)
        else:
            changes.pop('number')
    _check_references(changes)

    if any(field in changes for field in AMOUNT_FIELDS):
        values = {field: getattr(expense, field) for field in AMOUNT_FIELDS}
        values.update({k: v for k, v in changes.items() if k in AMOUNT_FIELDS})
        changes['amount_xof'], changes['amount_eur'] = _resolve_amounts(values, changed=changes)

    apply_changes(expense, changes, user)
    logger.info("Updated expense %s", expense.number)
    return expense


@transaction.atomic
def delete_expense(*, expense_id: int, user=None) -> None:
    """
    Soft delete an expense.

    Raises:
        BusinessRuleError: If the expense is VALIDEE or PAYEE
    """
    expense = get_for_update(Expense, expense_id, 'Expense')
    if not is_deletable(expense):
        raise BusinessRuleError(f"Expense {expense.number} cannot be deleted in status {expense.status}")

    expense.soft_delete(user)
    logger.info("Deleted expense %s", expense.number)


def get_expense_by_number(*, number: str) -> Expense:
    try:
        return Expense.objects.select_related('category', 'supplier', 'payment_method').get(number=number)
    except Expense.DoesNotExist:
        raise ResourceNotFoundError(f"Expense not found with number: {number}")
