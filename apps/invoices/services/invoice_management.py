"""
Invoice and line item management.

Line items can only change while the invoice is BROUILLON; every change
recomputes the invoice totals (see ``InvoiceLineItem.save``).
"""

import logging
from datetime import date, timedelta
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import BusinessRuleError, ResourceNotFoundError, ValidationFailureError
from apps.core.numbering import create_with_generated_code
from apps.core.services import apply_changes, ensure_unique, get_for_update
from apps.invoices.models import INVOICE_NUMBER_PREFIX, Invoice, InvoiceLineItem
from apps.invoices.workflow import is_deletable, is_editable

logger = logging.getLogger(__name__)

LINE_FIELDS = ('operation', 'quantity', 'unit_price_xof', 'unit_price_eur', 'description')


def invoice_number_prefix(issue_date: date) -> str:
    return f"{INVOICE_NUMBER_PREFIX}-{issue_date.year}"


def validate_invoice_dates(issue_date: date, due_date: date, today: Optional[date] = None) -> None:
    """
    Raises:
        ValidationFailureError: If the due date precedes the issue date, or the
            issue date is more than one day in the future
    """
    today = today or timezone.localdate()
    errors = {}
    if due_date < issue_date:
        errors['due_date'] = 'Due date cannot be before the invoice date.'
    if issue_date > today + timedelta(days=1):
        errors['issue_date'] = 'Invoice date cannot be in the future.'
    if errors:
        raise ValidationFailureError("Invalid invoice dates", details=errors)


def validate_parties(company, ship) -> None:
    """
    Raises:
        ValidationFailureError: If the ship does not belong to the company
        BusinessRuleError: If the company or ship is inactive
    """
    if ship.company_id != company.pk:
        raise ValidationFailureError(
            f"Ship {ship.name} does not belong to company {company.name}",
            details={'ship': 'Ship does not belong to the selected company.'},
        )
    if not company.active:
        raise BusinessRuleError(f"Company {company.name} is inactive")
    if not ship.active:
        raise BusinessRuleError(f"Ship {ship.name} is inactive")


def get_active_invoice_for_update(invoice_id):
    """
    Lock a live invoice.

    Raises:
        ResourceNotFoundError: If the invoice does not exist or was deleted
    """
    invoice = get_for_update(Invoice, invoice_id, 'Invoice')
    if not invoice.active:
        raise ResourceNotFoundError.for_entity('Invoice', invoice_id)
    return invoice


def _ensure_editable(invoice):
    if not is_editable(invoice):
        raise BusinessRuleError(
            f"Invoice {invoice.number} cannot be modified in status {invoice.status}"
        )


def _build_line(invoice, *, operation, quantity, unit_price_xof=None, unit_price_eur=None, description=''):
    if not operation.active:
        raise BusinessRuleError(f"Operation {operation.code} is inactive")

    # Catalog prices apply unless the line overrides them
    return InvoiceLineItem(
        invoice=invoice,
        operation=operation,
        quantity=quantity,
        unit_price_xof=operation.price_xof if unit_price_xof is None else unit_price_xof,
        unit_price_eur=operation.price_eur if unit_price_eur is None else unit_price_eur,
        description=description or operation.name,
    )


def create_invoice(
    *,
    company,
    ship,
    issue_date: date,
    due_date: date,
    user=None,
    notes: str = '',
    number: str = '',
    line_items: Iterable[dict] = (),
) -> Invoice:
    """
    Create a BROUILLON invoice with its line items.

    ``number`` defaults to the next ``FAC-YYYY-NNN`` for the issue year.

    Raises:
        ValidationFailureError: Bad dates, ship not owned by the company, bad line amounts
        BusinessRuleError: Inactive company, ship or operation
        DuplicateResourceError: If an explicit number is already used
    """
    validate_parties(company, ship)
    validate_invoice_dates(issue_date, due_date)

    def insert(candidate):
        return Invoice.objects.create(
            number=candidate,
            company=company,
            ship=ship,
            issue_date=issue_date,
            due_date=due_date,
            notes=notes,
            created_by=user,
            updated_by=user,
        )

    with transaction.atomic():
        if number:
            ensure_unique(Invoice, entity='Invoice', field='number', value=number)
            invoice = insert(number)
        else:
            invoice = create_with_generated_code(Invoice, 'number', invoice_number_prefix(issue_date), insert)

        for line_data in line_items:
            _build_line(invoice, **line_data).save()

    logger.info("Created invoice %s for %s (%s XOF)", invoice.number, company, invoice.total_xof)
    return invoice


@transaction.atomic
def update_invoice(*, invoice_id: int, user=None, **changes) -> Invoice:
    """
    Update header fields of a BROUILLON invoice.

    Raises:
        ResourceNotFoundError: If invoice does not exist
        BusinessRuleError: If the invoice is no longer a draft
        ValidationFailureError: Bad dates or ship not owned by the company
    """
    invoice = get_active_invoice_for_update(invoice_id)
    _ensure_editable(invoice)

    for field in ('status', 'line_items', 'total_xof', 'total_eur', 'amount_paid_xof'):
        changes.pop(field, None)
    if 'number' in changes:
        if changes['number']:
            ensure_unique(Invoice, entity='Invoice', field='number', value=changes['number'], exclude_pk=invoice.pk)
        else:
            changes.pop('number')

    company = changes.get('company', invoice.company)
    ship = changes.get('ship', invoice.ship)
    if 'company' in changes or 'ship' in changes:
        validate_parties(company, ship)
    if 'issue_date' in changes or 'due_date' in changes:
        validate_invoice_dates(
            changes.get('issue_date', invoice.issue_date),
            changes.get('due_date', invoice.due_date),
        )

    apply_changes(invoice, changes, user)
    logger.info("Updated invoice %s", invoice.number)
    return invoice


@transaction.atomic
def delete_invoice(*, invoice_id: int, user=None) -> None:
    """
    Soft delete a BROUILLON or ANNULEE invoice.

    Raises:
        BusinessRuleError: In any other status
    """
    invoice = get_active_invoice_for_update(invoice_id)
    if not is_deletable(invoice):
        raise BusinessRuleError(f"Invoice {invoice.number} cannot be deleted in status {invoice.status}")

    invoice.soft_delete(user)
    logger.info("Deleted invoice %s", invoice.number)


@transaction.atomic
def add_line_item(*, invoice_id: int, user=None, **line_data) -> InvoiceLineItem:
    """
    Append a line item to a draft invoice and refresh its totals.

    Raises:
        BusinessRuleError: If the invoice is not a draft or the operation is inactive
        ValidationFailureError: If quantity or prices are invalid
    """
    invoice = get_active_invoice_for_update(invoice_id)
    _ensure_editable(invoice)

    line = _build_line(invoice, **line_data)
    line.save()
    logger.info("Added line %s to invoice %s (total %s XOF)", line.pk, invoice.number, invoice.total_xof)
    return line


def _get_line(invoice, line_id):
    try:
        line = invoice.line_items.select_related('operation').get(pk=line_id)
    except InvoiceLineItem.DoesNotExist:
        raise ResourceNotFoundError(f"Line item {line_id} not found on invoice {invoice.number}")
    line.invoice = invoice
    return line


@transaction.atomic
def update_line_item(*, invoice_id: int, line_id: int, user=None, **changes) -> InvoiceLineItem:
    """
    Change a line item of a draft invoice and refresh its totals.

    Raises:
        ResourceNotFoundError: If the line does not belong to the invoice
        BusinessRuleError: If the invoice is not a draft
    """
    invoice = get_active_invoice_for_update(invoice_id)
    _ensure_editable(invoice)
    line = _get_line(invoice, line_id)

    operation = changes.get('operation')
    if operation is not None and operation.pk != line.operation_id:
        if not operation.active:
            raise BusinessRuleError(f"Operation {operation.code} is inactive")
        # A new operation brings its catalog prices unless the change overrides them
        changes.setdefault('unit_price_xof', operation.price_xof)
        changes.setdefault('unit_price_eur', operation.price_eur)
        if not changes.get('description') and line.description == line.operation.name:
            changes['description'] = operation.name

    for field, value in changes.items():
        if field in LINE_FIELDS:
            setattr(line, field, value)
    line.save()
    logger.info("Updated line %s on invoice %s (total %s XOF)", line.pk, invoice.number, invoice.total_xof)
    return line


@transaction.atomic
def remove_line_item(*, invoice_id: int, line_id: int, user=None) -> Invoice:
    """
    Remove a line item from a draft invoice and refresh its totals.

    Raises:
        ResourceNotFoundError: If the line does not belong to the invoice
        BusinessRuleError: If the invoice is not a draft
    """
    invoice = get_active_invoice_for_update(invoice_id)
    _ensure_editable(invoice)
    line = _get_line(invoice, line_id)

    line.delete()
    logger.info("Removed line %s from invoice %s (total %s XOF)", line_id, invoice.number, invoice.total_xof)
    return invoice


@transaction.atomic
def recalculate_invoice_totals(*, invoice_id: int) -> Invoice:
    """Recompute totals from the stored line items."""
    invoice = get_for_update(Invoice, invoice_id, 'Invoice')
    invoice.recalculate_totals()
    return invoice


def get_invoice_by_number(*, number: str) -> Invoice:
    try:
        return Invoice.objects.select_related('company', 'ship').get(number=number)
    except Invoice.DoesNotExist:
        raise ResourceNotFoundError(f"Invoice not found with number: {number}")
