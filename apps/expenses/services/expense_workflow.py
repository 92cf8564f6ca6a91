"""
Expense status transitions.

Every transition locks the expense row, checks the transition table in
``apps.expenses.workflow`` and stamps the matching audit columns.
"""

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.core.services import get_for_update
from apps.expenses.models import Expense, ExpenseStatus
from apps.expenses.workflow import guard_expense_transition

logger = logging.getLogger(__name__)


@transaction.atomic
def change_expense_status(*, expense_id: int, status: str, user=None, comment: Optional[str] = None) -> Expense:
    """
    Move an expense to ``status``.

    Args:
        expense_id: Expense primary key
        status: Requested ExpenseStatus value
        user: User performing the change
        comment: Free text; mandatory when rejecting

    Returns:
        Updated Expense

    Raises:
        ResourceNotFoundError: If expense does not exist
        InvalidTransitionError: If the transition is not allowed
        ValidationFailureError: If rejecting without a comment
    """
    expense = get_for_update(Expense, expense_id, 'Expense')
    previous = expense.status
    guard_expense_transition(previous, status, comment)

    now = timezone.now()
    expense.status = status
    update_fields = ['status', 'updated_by', 'updated_at']

    if comment and comment.strip():
        expense.status_comment = comment.strip()
        update_fields.append('status_comment')

    if status == ExpenseStatus.VALIDEE:
        expense.validated_at = now
        expense.validated_by = user
        update_fields += ['validated_at', 'validated_by']
    elif status == ExpenseStatus.PAYEE:
        expense.paid_at = now
        update_fields.append('paid_at')

    expense.updated_by = user
    expense.save(update_fields=update_fields)

    logger.info("Expense %s: %s -> %s", expense.number, previous, status)
    return expense


def submit_expense(*, expense_id: int, user=None, comment: Optional[str] = None) -> Expense:
    """BROUILLON -> EN_ATTENTE."""
    return change_expense_status(expense_id=expense_id, status=ExpenseStatus.EN_ATTENTE, user=user, comment=comment)


def approve_expense(*, expense_id: int, user=None, comment: Optional[str] = None) -> Expense:
    """EN_ATTENTE -> VALIDEE."""
    return change_expense_status(expense_id=expense_id, status=ExpenseStatus.VALIDEE, user=user, comment=comment)


def reject_expense(*, expense_id: int, user=None, comment: Optional[str] = None) -> Expense:
    """EN_ATTENTE -> REJETEE; ``comment`` is required."""
    return change_expense_status(expense_id=expense_id, status=ExpenseStatus.REJETEE, user=user, comment=comment)


def mark_expense_paid(*, expense_id: int, user=None, comment: Optional[str] = None) -> Expense:
    """VALIDEE -> PAYEE."""
    return change_expense_status(expense_id=expense_id, status=ExpenseStatus.PAYEE, user=user, comment=comment)


def cancel_expense(*, expense_id: int, user=None, comment: Optional[str] = None) -> Expense:
    """BROUILLON / EN_ATTENTE / VALIDEE -> ANNULEE."""
    return change_expense_status(expense_id=expense_id, status=ExpenseStatus.ANNULEE, user=user, comment=comment)
