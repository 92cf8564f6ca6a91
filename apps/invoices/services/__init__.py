"""
Invoices app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and row locks.
"""

from .invoice_management import (
    create_invoice,
    update_invoice,
    delete_invoice,
    add_line_item,
    update_line_item,
    remove_line_item,
    recalculate_invoice_totals,
    get_invoice_by_number,
    validate_invoice_dates,
)
from .invoice_workflow import (
    emit_invoice,
    record_invoice_payment,
    mark_invoice_paid,
    cancel_invoice,
    mark_invoice_overdue,
    update_overdue_invoices,
)
from .invoice_statistics import (
    get_invoice_statistics,
    get_monthly_invoice_evolution,
    get_company_breakdown,
    get_operation_breakdown,
)

__all__ = [
    # Invoice management
    'create_invoice',
    'update_invoice',
    'delete_invoice',
    'add_line_item',
    'update_line_item',
    'remove_line_item',
    'recalculate_invoice_totals',
    'get_invoice_by_number',
    'validate_invoice_dates',

    # Workflow
    'emit_invoice',
    'record_invoice_payment',
    'mark_invoice_paid',
    'cancel_invoice',
    'mark_invoice_overdue',
    'update_overdue_invoices',

    # Statistics
    'get_invoice_statistics',
    'get_monthly_invoice_evolution',
    'get_company_breakdown',
    'get_operation_breakdown',
]
