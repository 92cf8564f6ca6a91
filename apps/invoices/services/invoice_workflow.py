"""
Invoice status transitions and payments.

Each function locks the invoice row, checks the transition table in
``apps.invoices.workflow`` and saves the new status in one transaction.
"""

import logging
from datetime import date
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import BusinessRuleError, InvalidTransitionError, ValidationFailureError
from apps.invoices.services.invoice_management import get_active_invoice_for_update
from apps.invoices.calculations import to_decimal
from apps.invoices.models import Invoice, InvoicePayment, InvoiceStatus
from apps.invoices.workflow import (
    OVERDUE_CANDIDATE_STATUSES,
    PAYABLE_STATUSES,
    guard_invoice_transition,
    payment_status,
)

logger = logging.getLogger(__name__)


def _set_status(invoice, status, user, extra_fields=()):
    previous = invoice.status
    guard_invoice_transition(previous, status)
    invoice.status = status
    invoice.updated_by = user
    invoice.save(update_fields=['status', 'updated_by', 'updated_at', *extra_fields])
    logger.info("Invoice %s: %s -> %s", invoice.number, previous, status)
    return invoice


def _ensure_has_lines(invoice):
    if not invoice.line_items.exists():
        raise BusinessRuleError(f"Invoice {invoice.number} has no line items")


@transaction.atomic
def emit_invoice(*, invoice_id: int, user=None) -> Invoice:
    """
    BROUILLON -> EMISE.

    Raises:
        InvalidTransitionError: If the invoice is not a draft
        BusinessRuleError: If the invoice has no line items
    """
    invoice = get_active_invoice_for_update(invoice_id)
    guard_invoice_transition(invoice.status, InvoiceStatus.EMISE)
    if not invoice.line_items.exists():
        raise BusinessRuleError(f"Invoice {invoice.number} has no line items and cannot be issued")
    return _set_status(invoice, InvoiceStatus.EMISE, user)


@transaction.atomic
def record_invoice_payment(
    *,
    invoice_id: int,
    amount_xof,
    user=None,
    paid_on: Optional[date] = None,
    payment_method=None,
    reference: str = '',
    note: str = '',
) -> Invoice:
    """
    Record a payment and move the invoice to PARTIELLEMENT_PAYEE or PAYEE.

    A payment at or above the outstanding balance settles the invoice; an
    excess is kept and exposed via ``get_overpaid_amount``.

    Raises:
        ValidationFailureError: If the amount is not positive
        InvalidTransitionError: If the invoice is already PAYEE or ANNULEE
        BusinessRuleError: If the invoice has no line items
    """
    amount_xof = to_decimal(amount_xof, 'amount_xof')
    if amount_xof <= 0:
        raise ValidationFailureError(
            "Payment amount must be greater than 0",
            details={'amount_xof': 'Must be greater than 0.'},
        )

    invoice = get_active_invoice_for_update(invoice_id)
    if invoice.status not in PAYABLE_STATUSES:
        raise InvalidTransitionError(invoice.status, InvoiceStatus.PAYEE)
    _ensure_has_lines(invoice)

    InvoicePayment.objects.create(
        invoice=invoice,
        amount_xof=amount_xof,
        paid_on=paid_on or timezone.localdate(),
        payment_method=payment_method,
        reference=reference,
        note=note,
        recorded_by=user,
    )
    paid = invoice.recalculate_amount_paid()
    new_status = payment_status(invoice.total_xof, paid)

    extra_fields = ['amount_paid_xof']
    if new_status == InvoiceStatus.PAYEE:
        invoice.paid_at = timezone.now()
        extra_fields.append('paid_at')

    if new_status == invoice.status:
        invoice.updated_by = user
        invoice.save(update_fields=['updated_by', 'updated_at', *extra_fields])
    else:
        _set_status(invoice, new_status, user, extra_fields)

    overpaid = invoice.get_overpaid_amount()
    if overpaid > 0:
        logger.warning("Invoice %s overpaid by %s XOF", invoice.number, overpaid)
    logger.info("Payment of %s XOF recorded on invoice %s (paid %s / %s)",
                amount_xof, invoice.number, paid, invoice.total_xof)
    return invoice


@transaction.atomic
def mark_invoice_paid(*, invoice_id: int, user=None, payment_method=None, reference: str = '') -> Invoice:
    """
    Settle the outstanding balance in one payment.

    Raises:
        InvalidTransitionError: If the invoice is already PAYEE or ANNULEE
        BusinessRuleError: If the invoice has no line items
    """
    invoice = get_active_invoice_for_update(invoice_id)
    if invoice.status not in PAYABLE_STATUSES:
        raise InvalidTransitionError(invoice.status, InvoiceStatus.PAYEE)
    _ensure_has_lines(invoice)
    outstanding = invoice.get_outstanding_balance()

    if outstanding > 0:
        return record_invoice_payment(
            invoice_id=invoice.pk,
            amount_xof=outstanding,
            user=user,
            payment_method=payment_method,
            reference=reference,
            note='Balance settled',
        )

    invoice.paid_at = timezone.now()
    return _set_status(invoice, InvoiceStatus.PAYEE, user, ['paid_at'])


@transaction.atomic
def cancel_invoice(*, invoice_id: int, reason: str, user=None) -> Invoice:
    """
    Cancel an invoice; the reason is appended to its notes.

    Raises:
        ValidationFailureError: If no reason is given
        InvalidTransitionError: If the invoice is already PAYEE or ANNULEE
    """
    if not (reason or '').strip():
        raise ValidationFailureError(
            "A reason is required to cancel an invoice",
            details={'reason': 'This field is required.'},
        )

    invoice = get_active_invoice_for_update(invoice_id)
    guard_invoice_transition(invoice.status, InvoiceStatus.ANNULEE)

    stamp = timezone.localdate().isoformat()
    invoice.notes = f"{invoice.notes}\n[{stamp}] Annulée: {reason.strip()}".strip()
    return _set_status(invoice, InvoiceStatus.ANNULEE, user, ['notes'])


@transaction.atomic
def mark_invoice_overdue(*, invoice_id: int, user=None, today: Optional[date] = None) -> Invoice:
    """
    Persist EN_RETARD for an invoice whose due date has passed.

    Raises:
        InvalidTransitionError: If EN_RETARD is not reachable from the current status
        BusinessRuleError: If the due date has not passed yet
    """
    today = today or timezone.localdate()
    invoice = get_active_invoice_for_update(invoice_id)
    guard_invoice_transition(invoice.status, InvoiceStatus.EN_RETARD)

    if invoice.due_date >= today:
        raise BusinessRuleError(f"Invoice {invoice.number} is not past its due date ({invoice.due_date})")
    return _set_status(invoice, InvoiceStatus.EN_RETARD, user)


@transaction.atomic
def update_overdue_invoices(*, today: Optional[date] = None, user=None) -> int:
    """
    Persist EN_RETARD for every issued or partially paid invoice past due.

    Returns:
        Number of invoices updated
    """
    today = today or timezone.localdate()
    updated = Invoice.objects.filter(
        active=True,
        status__in=OVERDUE_CANDIDATE_STATUSES,
        due_date__lt=today,
    ).update(status=InvoiceStatus.EN_RETARD, updated_by=user, updated_at=timezone.now())

    logger.info("Marked %d invoice(s) overdue as of %s", updated, today)
    return updated
