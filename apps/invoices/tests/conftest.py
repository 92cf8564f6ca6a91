from datetime import timedelta
from decimal import Decimal

import pytest

from apps.invoices.services import create_invoice, emit_invoice


@pytest.fixture
def make_invoice(company, ship, operation, today):
    """Factory creating an invoice through the service layer (one line of 2.5 x OPE-001)."""
    def _make(**overrides):
        data = {
            'company': company,
            'ship': ship,
            'issue_date': today,
            'due_date': today + timedelta(days=30),
            'line_items': [{'operation': operation, 'quantity': Decimal('2.5')}],
        }
        data.update(overrides)
        return create_invoice(**data)
    return _make


@pytest.fixture
def draft_invoice(make_invoice):
    return make_invoice()


@pytest.fixture
def issued_invoice(make_invoice):
    invoice = make_invoice()
    return emit_invoice(invoice_id=invoice.pk)


@pytest.fixture
def past_due_invoice(make_invoice, today):
    """Issued invoice whose due date passed ten days ago; stored status EMISE."""
    invoice = make_invoice(
        issue_date=today - timedelta(days=40),
        due_date=today - timedelta(days=10),
    )
    return emit_invoice(invoice_id=invoice.pk)
