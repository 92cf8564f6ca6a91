from decimal import Decimal

import pytest

from apps.expenses.services import create_expense


@pytest.fixture
def make_expense(expense_category, payment_method, today):
    """Factory creating a BROUILLON expense through the service layer."""
    def _make(**overrides):
        data = {
            'title': 'Plein de carburant',
            'category': expense_category,
            'payment_method': payment_method,
            'expense_date': today,
            'amount_xof': Decimal('65595.70'),
        }
        data.update(overrides)
        return create_expense(**data)
    return _make


@pytest.fixture
def expense(make_expense):
    return make_expense()
