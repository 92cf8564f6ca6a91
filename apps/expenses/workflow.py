"""
Expense status workflow.

    BROUILLON  -> EN_ATTENTE | ANNULEE
    EN_ATTENTE -> VALIDEE | REJETEE | ANNULEE
    VALIDEE    -> PAYEE | ANNULEE
    PAYEE, REJETEE, ANNULEE are terminal.

A rejection must carry a non-empty comment.
"""
from apps.core.exceptions import InvalidTransitionError, ValidationFailureError

from .models import ExpenseStatus

EXPENSE_TRANSITIONS = {
    ExpenseStatus.BROUILLON: frozenset({ExpenseStatus.EN_ATTENTE, ExpenseStatus.ANNULEE}),
    ExpenseStatus.EN_ATTENTE: frozenset({
        ExpenseStatus.VALIDEE, ExpenseStatus.REJETEE, ExpenseStatus.ANNULEE,
    }),
    ExpenseStatus.VALIDEE: frozenset({ExpenseStatus.PAYEE, ExpenseStatus.ANNULEE}),
    ExpenseStatus.PAYEE: frozenset(),
    ExpenseStatus.REJETEE: frozenset(),
    ExpenseStatus.ANNULEE: frozenset(),
}

EDITABLE_STATUSES = frozenset({ExpenseStatus.BROUILLON, ExpenseStatus.EN_ATTENTE})
DELETABLE_STATUSES = frozenset({
    ExpenseStatus.BROUILLON, ExpenseStatus.EN_ATTENTE, ExpenseStatus.REJETEE, ExpenseStatus.ANNULEE,
})


def can_transition(current, requested) -> bool:
    return requested in EXPENSE_TRANSITIONS.get(current, frozenset())


def guard_expense_transition(current, requested, comment=None) -> None:
    """
    Check a requested expense status change.

    Raises:
        InvalidTransitionError: If ``requested`` is not reachable from ``current``
        ValidationFailureError: If rejecting without a comment
    """
    if not can_transition(current, requested):
        raise InvalidTransitionError(current, requested)

    if requested == ExpenseStatus.REJETEE and not (comment or '').strip():
        raise ValidationFailureError(
            "A comment is required to reject an expense",
            details={'comment': 'This field is required when rejecting.'},
        )


def is_editable(expense) -> bool:
    return expense.status in EDITABLE_STATUSES


def is_deletable(expense) -> bool:
    return expense.status in DELETABLE_STATUSES
