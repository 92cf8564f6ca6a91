"""Aggregated expense figures for dashboards and exports."""

from datetime import date
from decimal import Decimal
from typing import Optional

from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from apps.core.reporting import in_period, month_label, month_starts
from apps.expenses.models import Expense, ExpenseStatus

ZERO = Decimal('0.00')
BREAKDOWN_LIMIT = 6
NOT_SPENT = (ExpenseStatus.ANNULEE, ExpenseStatus.REJETEE)


def _spent(date_from=None, date_to=None):
    queryset = Expense.objects.filter(active=True).exclude(status__in=NOT_SPENT)
    return in_period(queryset, 'expense_date', date_from, date_to)


def _category_rows(queryset):
    return [
        {
            'category_id': row['category_id'],
            'category_name': row['category__name'],
            'count': row['count'],
            'amount_xof': row['total_xof'] or ZERO,
        }
        for row in queryset.values('category_id', 'category__name')
        .annotate(count=Count('id'), total_xof=Sum('amount_xof'))
        .order_by('-total_xof', 'category__name')
    ]


def get_expense_statistics(*, date_from: Optional[date] = None, date_to: Optional[date] = None) -> dict:
    """
    Totals of active expenses, overall, per status and per category.

    Cancelled and rejected expenses are counted per status but left out of
    ``total_amount_xof``.
    """
    queryset = in_period(Expense.objects.filter(active=True), 'expense_date', date_from, date_to)

    by_status = {
        status: {'count': 0, 'amount_xof': ZERO}
        for status in ExpenseStatus.values
    }
    for row in queryset.values('status').annotate(count=Count('id'), total_xof=Sum('amount_xof')):
        by_status[row['status']] = {'count': row['count'], 'amount_xof': row['total_xof'] or ZERO}

    counted = _spent(date_from, date_to)
    totals = counted.aggregate(total_xof=Sum('amount_xof'), total_eur=Sum('amount_eur'))

    return {
        'total_count': queryset.count(),
        'total_amount_xof': totals['total_xof'] or ZERO,
        'total_amount_eur': totals['total_eur'] or ZERO,
        'pending_count': by_status[ExpenseStatus.EN_ATTENTE]['count'],
        'pending_amount_xof': by_status[ExpenseStatus.EN_ATTENTE]['amount_xof'],
        'by_status': by_status,
        'by_category': _category_rows(counted),
    }


def get_expense_category_breakdown(
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = BREAKDOWN_LIMIT,
) -> list:
    """Spent amounts per expense category, largest first."""
    return _category_rows(_spent(date_from, date_to))[:limit]


def get_monthly_expense_evolution(*, months: int = 12, today: Optional[date] = None) -> list:
    """
    Expenses per month over the last ``months`` months, oldest first.

    Cancelled and rejected expenses are left out; empty months report zeros.
    """
    today = today or timezone.localdate()
    starts = month_starts(months, today)

    rows = (
        _spent(date_from=starts[0], date_to=today)
        .annotate(month=TruncMonth('expense_date'))
        .values('month')
        .annotate(count=Count('id'), total_xof=Sum('amount_xof'))
        .order_by('month')
    )
    by_month = {row['month']: row for row in rows}

    return [
        {
            'month': month_label(start),
            'count': by_month.get(start, {}).get('count', 0),
            'amount_xof': by_month.get(start, {}).get('total_xof') or ZERO,
        }
        for start in starts
    ]
