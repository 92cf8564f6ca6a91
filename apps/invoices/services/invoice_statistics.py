"""Aggregated invoice figures for dashboards and exports."""

from datetime import date
from decimal import Decimal
from typing import Optional

from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from apps.core.reporting import in_period, month_label, month_starts
from apps.invoices.models import Invoice, InvoiceLineItem, InvoiceStatus
from apps.invoices.workflow import effective_status

ZERO = Decimal('0')
TOP_COMPANIES = 5
BREAKDOWN_LIMIT = 6
NOT_INVOICED = (InvoiceStatus.BROUILLON, InvoiceStatus.ANNULEE)


def get_invoice_statistics(
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    today: Optional[date] = None,
) -> dict:
    """
    Totals of active invoices grouped by effective status.

    Drafts and cancelled invoices are left out of the invoiced, paid and
    outstanding totals.
    """
    today = today or timezone.localdate()
    queryset = in_period(Invoice.objects.filter(active=True), 'issue_date', date_from, date_to)

    by_status = {
        status: {'count': 0, 'amount_xof': ZERO}
        for status in InvoiceStatus.values
    }
    total_invoiced = ZERO
    total_paid = ZERO
    total_outstanding = ZERO

    for invoice in queryset.only('status', 'due_date', 'total_xof', 'amount_paid_xof'):
        status = effective_status(invoice, today)
        by_status[status]['count'] += 1
        by_status[status]['amount_xof'] += invoice.total_xof

        if invoice.status in NOT_INVOICED:
            continue
        total_invoiced += invoice.total_xof
        total_paid += invoice.amount_paid_xof
        total_outstanding += invoice.get_outstanding_balance()

    top_companies = [
        {
            'company_id': row['company_id'],
            'company_name': row['company__name'],
            'count': row['count'],
            'amount_xof': row['total'] or ZERO,
        }
        for row in queryset.exclude(status=InvoiceStatus.ANNULEE)
        .values('company_id', 'company__name')
        .annotate(count=Count('id'), total=Sum('total_xof'))
        .order_by('-total')[:TOP_COMPANIES]
    ]

    return {
        'total_count': sum(entry['count'] for entry in by_status.values()),
        'total_invoiced_xof': total_invoiced,
        'total_paid_xof': total_paid,
        'total_outstanding_xof': total_outstanding,
        'overdue_count': by_status[InvoiceStatus.EN_RETARD]['count'],
        'overdue_amount_xof': by_status[InvoiceStatus.EN_RETARD]['amount_xof'],
        'by_status': by_status,
        'top_companies': top_companies,
    }


def _invoiced(date_from=None, date_to=None):
    """Active invoices that were actually issued (no drafts, no cancellations)."""
    queryset = Invoice.objects.filter(active=True).exclude(status__in=NOT_INVOICED)
    return in_period(queryset, 'issue_date', date_from, date_to)


def get_monthly_invoice_evolution(*, months: int = 12, today: Optional[date] = None) -> list:
    """
    Issued invoices per month over the last ``months`` months.

    Every month of the window is present, oldest first; months without
    invoices report zeros.
    """
    today = today or timezone.localdate()
    starts = month_starts(months, today)

    rows = (
        _invoiced(date_from=starts[0], date_to=today)
        .annotate(month=TruncMonth('issue_date'))
        .values('month')
        .annotate(count=Count('id'), invoiced=Sum('total_xof'), paid=Sum('amount_paid_xof'))
        .order_by('month')
    )
    by_month = {row['month']: row for row in rows}

    evolution = []
    for start in starts:
        row = by_month.get(start, {})
        evolution.append({
            'month': month_label(start),
            'count': row.get('count', 0),
            'amount_xof': row.get('invoiced') or ZERO,
            'paid_xof': row.get('paid') or ZERO,
        })
    return evolution


def get_company_breakdown(
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = BREAKDOWN_LIMIT,
) -> list:
    """Issued amounts per client company, largest first."""
    rows = (
        _invoiced(date_from, date_to)
        .values('company_id', 'company__name')
        .annotate(count=Count('id'), invoiced=Sum('total_xof'), paid=Sum('amount_paid_xof'))
        .order_by('-invoiced', 'company__name')[:limit]
    )
    return [
        {
            'company_id': row['company_id'],
            'company_name': row['company__name'],
            'count': row['count'],
            'amount_xof': row['invoiced'] or ZERO,
            'paid_xof': row['paid'] or ZERO,
        }
        for row in rows
    ]


def get_operation_breakdown(
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = BREAKDOWN_LIMIT,
) -> list:
    """Invoiced amounts per catalog operation, largest first."""
    lines = InvoiceLineItem.objects.filter(invoice__active=True).exclude(invoice__status__in=NOT_INVOICED)
    lines = in_period(lines, 'invoice__issue_date', date_from, date_to)

    rows = (
        lines.values('operation_id', 'operation__code', 'operation__name')
        .annotate(
            line_count=Count('id'),
            invoice_count=Count('invoice', distinct=True),
            total_quantity=Sum('quantity'),
            total_xof=Sum('amount_xof'),
        )
        .order_by('-total_xof', 'operation__code')[:limit]
    )
    return [
        {
            'operation_id': row['operation_id'],
            'operation_code': row['operation__code'],
            'operation_name': row['operation__name'],
            'line_count': row['line_count'],
            'invoice_count': row['invoice_count'],
            'quantity': row['total_quantity'] or ZERO,
            'amount_xof': row['total_xof'] or ZERO,
        }
        for row in rows
    ]
