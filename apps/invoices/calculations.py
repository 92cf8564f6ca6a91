"""
Exact decimal arithmetic for invoice line items and totals.

Quantities and unit prices carry two decimal places, so a line amount needs
at most four; amounts are stored with four places and never rounded here.
Floats are converted through ``str`` so ``2.5`` stays ``Decimal('2.5')``.
"""
from decimal import Decimal, InvalidOperation
from typing import Iterable, NamedTuple, Optional

from apps.core.exceptions import ValidationFailureError

ZERO = Decimal('0')


class LineAmounts(NamedTuple):
    amount_xof: Decimal
    amount_eur: Optional[Decimal]


class InvoiceTotals(NamedTuple):
    total_xof: Decimal
    total_eur: Optional[Decimal]


def to_decimal(value, field='value') -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationFailureError(f"{field} is not a valid number", details={field: 'Invalid number.'})


def compute_line_amounts(quantity, unit_price_xof, unit_price_eur=None) -> LineAmounts:
    """
    Return ``quantity * unit_price`` per currency.

    Raises:
        ValidationFailureError: If quantity is not positive or a price is negative
    """
    quantity = to_decimal(quantity, 'quantity')
    unit_price_xof = to_decimal(unit_price_xof, 'unit_price_xof')

    if quantity <= ZERO:
        raise ValidationFailureError(
            "Quantity must be greater than 0",
            details={'quantity': 'Must be greater than 0.'},
        )
    if unit_price_xof < ZERO:
        raise ValidationFailureError(
            "Unit price must not be negative",
            details={'unit_price_xof': 'Must not be negative.'},
        )

    amount_eur = None
    if unit_price_eur is not None:
        unit_price_eur = to_decimal(unit_price_eur, 'unit_price_eur')
        if unit_price_eur < ZERO:
            raise ValidationFailureError(
                "Unit price must not be negative",
                details={'unit_price_eur': 'Must not be negative.'},
            )
        amount_eur = quantity * unit_price_eur

    return LineAmounts(quantity * unit_price_xof, amount_eur)


def sum_line_amounts(lines: Iterable) -> InvoiceTotals:
    """
    Sum line amounts per currency.

    ``lines`` are objects with ``amount_xof`` and ``amount_eur``. The EUR total
    is None when no line carries an EUR amount.
    """
    total_xof = ZERO
    total_eur = None
    for line in lines:
        total_xof += line.amount_xof
        if line.amount_eur is not None:
            total_eur = (total_eur or ZERO) + line.amount_eur
    return InvoiceTotals(total_xof, total_eur)
