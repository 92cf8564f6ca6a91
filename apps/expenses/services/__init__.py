"""
Expenses app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and row locks.
"""

from .expense_management import (
    create_expense,
    update_expense,
    delete_expense,
    get_expense_by_number,
)
from .expense_workflow import (
    change_expense_status,
    submit_expense,
    approve_expense,
    reject_expense,
    mark_expense_paid,
    cancel_expense,
)
from .expense_statistics import (
    get_expense_statistics,
    get_expense_category_breakdown,
    get_monthly_expense_evolution,
)
from .reference_data import (
    create_payment_method,
    update_payment_method,
    create_expense_category,
    update_expense_category,
    create_expense_supplier,
    update_expense_supplier,
)

__all__ = [
    # Expense management
    'create_expense',
    'update_expense',
    'delete_expense',
    'get_expense_by_number',

    # Workflow
    'change_expense_status',
    'submit_expense',
    'approve_expense',
    'reject_expense',
    'mark_expense_paid',
    'cancel_expense',

    # Statistics
    'get_expense_statistics',
    'get_expense_category_breakdown',
    'get_monthly_expense_evolution',

    # Reference data
    'create_payment_method',
    'update_payment_method',
    'create_expense_category',
    'update_expense_category',
    'create_expense_supplier',
    'update_expense_supplier',
]
