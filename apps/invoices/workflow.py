"""
Invoice status workflow.

Stored transitions:

    BROUILLON           -> EMISE | PARTIELLEMENT_PAYEE | PAYEE | ANNULEE
    EMISE               -> PARTIELLEMENT_PAYEE | PAYEE | EN_RETARD | ANNULEE
    PARTIELLEMENT_PAYEE -> PAYEE | EN_RETARD | ANNULEE
    EN_RETARD           -> PARTIELLEMENT_PAYEE | PAYEE | ANNULEE
    PAYEE, ANNULEE are terminal.

Overdue is also a read-time notion: an invoice that is neither paid nor
cancelled and whose due date has passed is reported as EN_RETARD, while its
stored status stays untouched until an explicit transition.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db.models import Q
from django.utils import timezone

from apps.core.exceptions import InvalidTransitionError

from .models import InvoiceStatus

INVOICE_TRANSITIONS = {
    InvoiceStatus.BROUILLON: frozenset({
        InvoiceStatus.EMISE,
        InvoiceStatus.PARTIELLEMENT_PAYEE,
        InvoiceStatus.PAYEE,
        InvoiceStatus.ANNULEE,
    }),
    InvoiceStatus.EMISE: frozenset({
        InvoiceStatus.PARTIELLEMENT_PAYEE,
        InvoiceStatus.PAYEE,
        InvoiceStatus.EN_RETARD,
        InvoiceStatus.ANNULEE,
    }),
    InvoiceStatus.PARTIELLEMENT_PAYEE: frozenset({
        InvoiceStatus.PAYEE,
        InvoiceStatus.EN_RETARD,
        InvoiceStatus.ANNULEE,
    }),
    InvoiceStatus.EN_RETARD: frozenset({
        InvoiceStatus.PARTIELLEMENT_PAYEE,
        InvoiceStatus.PAYEE,
        InvoiceStatus.ANNULEE,
    }),
    InvoiceStatus.PAYEE: frozenset(),
    InvoiceStatus.ANNULEE: frozenset(),
}

CLOSED_STATUSES = frozenset({InvoiceStatus.PAYEE, InvoiceStatus.ANNULEE})
PAYABLE_STATUSES = frozenset({
    InvoiceStatus.BROUILLON,
    InvoiceStatus.EMISE,
    InvoiceStatus.PARTIELLEMENT_PAYEE,
    InvoiceStatus.EN_RETARD,
})
OVERDUE_CANDIDATE_STATUSES = frozenset({InvoiceStatus.EMISE, InvoiceStatus.PARTIELLEMENT_PAYEE})
EDITABLE_STATUSES = frozenset({InvoiceStatus.BROUILLON})
DELETABLE_STATUSES = frozenset({InvoiceStatus.BROUILLON, InvoiceStatus.ANNULEE})


def can_transition(current, requested) -> bool:
    return requested in INVOICE_TRANSITIONS.get(current, frozenset())


def guard_invoice_transition(current, requested) -> None:
    """
    Raises:
        InvalidTransitionError: If ``requested`` is not reachable from ``current``
    """
    if not can_transition(current, requested):
        raise InvalidTransitionError(current, requested)


def is_past_due(status, due_date: date, today: Optional[date] = None) -> bool:
    today = today or timezone.localdate()
    return status not in CLOSED_STATUSES and due_date < today


def effective_status(invoice, today: Optional[date] = None) -> str:
    """Status as reported to readers; never persisted."""
    if is_past_due(invoice.status, invoice.due_date, today):
        return InvoiceStatus.EN_RETARD
    return invoice.status


def effective_status_filter(status, today: Optional[date] = None) -> Q:
    """Queryset condition matching invoices whose effective status is ``status``."""
    today = today or timezone.localdate()
    past_due = Q(due_date__lt=today) & ~Q(status__in=CLOSED_STATUSES)

    if status == InvoiceStatus.EN_RETARD:
        return Q(status=InvoiceStatus.EN_RETARD) | past_due
    if status in CLOSED_STATUSES:
        return Q(status=status)
    return Q(status=status) & ~past_due


def payment_status(total: Decimal, paid: Decimal) -> str:
    """
    Status implied by the amount paid.

    Paying at least the total settles the invoice; any excess is kept on
    record and reported as overpaid, the status stays PAYEE.
    """
    if paid >= total:
        return InvoiceStatus.PAYEE
    return InvoiceStatus.PARTIELLEMENT_PAYEE


def is_editable(invoice) -> bool:
    return invoice.status in EDITABLE_STATUSES


def is_deletable(invoice) -> bool:
    return invoice.status in DELETABLE_STATUSES
