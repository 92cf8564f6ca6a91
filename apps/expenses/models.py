from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import AuditedModel

CATEGORY_CODE_PREFIX = 'CAT-DEP'
EXPENSE_NUMBER_PREFIX = 'DEP'
CENT = Decimal('0.01')


class Currency(models.TextChoices):
    XOF = 'XOF', 'Franc CFA'
    EUR = 'EUR', 'Euro'
    USD = 'USD', 'Dollar US'


class ExpenseStatus(models.TextChoices):
    BROUILLON = 'BROUILLON', 'Brouillon'
    EN_ATTENTE = 'EN_ATTENTE', 'En attente'
    VALIDEE = 'VALIDEE', 'Validée'
    PAYEE = 'PAYEE', 'Payée'
    REJETEE = 'REJETEE', 'Rejetée'
    ANNULEE = 'ANNULEE', 'Annulée'


class PaymentMethod(AuditedModel):
    """Means of payment (cash, transfer, cheque...) used to settle expenses and invoices."""

    name = models.CharField(max_length=100, unique=True)
    code = models.CharField(max_length=20, unique=True)
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = 'payment_methods'
        ordering = ['name']

    def __str__(self):
        return self.name


class ExpenseCategory(AuditedModel):
    """Expense category; ``code`` is generated as CAT-DEP-NNN."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        db_table = 'expense_categories'
        verbose_name_plural = 'expense categories'
        ordering = ['name']

    def __str__(self):
        return self.name


class ExpenseSupplier(AuditedModel):
    """Supplier an expense was paid to."""

    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(max_length=100, blank=True)
    rccm = models.CharField(max_length=50, blank=True)
    ninea = models.CharField(max_length=50, blank=True)

    class Meta:
        db_table = 'expense_suppliers'
        ordering = ['name']

    def __str__(self):
        return self.name


class Expense(AuditedModel):
    """Operating expense following the BROUILLON -> ... -> PAYEE workflow."""

    number = models.CharField(max_length=30, unique=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    category = models.ForeignKey(
        ExpenseCategory,
        on_delete=models.PROTECT,
        related_name='expenses'
    )
    supplier = models.ForeignKey(
        ExpenseSupplier,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='expenses'
    )
    payment_method = models.ForeignKey(
        PaymentMethod,
        on_delete=models.PROTECT,
        related_name='expenses'
    )

    expense_date = models.DateField()

    # Amounts
    amount_xof = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(CENT)]
    )
    amount_eur = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(CENT)]
    )
    exchange_rate = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.0001'))]
    )
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.XOF)

    # Workflow
    status = models.CharField(
        max_length=20,
        choices=ExpenseStatus.choices,
        default=ExpenseStatus.BROUILLON
    )
    status_comment = models.TextField(blank=True)
    validated_at = models.DateTimeField(null=True, blank=True)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['status', 'expense_date']),
            models.Index(fields=['category', 'expense_date']),
            models.Index(fields=['expense_date']),
            models.Index(fields=['active']),
        ]
        ordering = ['-expense_date', '-created_at']

    def __str__(self):
        return f"{self.number} - {self.title}"


def fill_converted_amounts(*, currency, amount_xof=None, amount_eur=None, exchange_rate=None):
    """
    Derive the missing amount from the other one and the exchange rate.

    ``exchange_rate`` is XOF per EUR. A XOF expense without EUR amount gets
    ``xof / rate``; an EUR expense without XOF amount gets ``eur * rate``.
    Results are rounded to the cent, half up. Returns ``(amount_xof, amount_eur)``.
    """
    if exchange_rate:
        if currency == Currency.XOF and amount_xof is not None and amount_eur is None:
            amount_eur = (amount_xof / exchange_rate).quantize(CENT, rounding=ROUND_HALF_UP)
        elif currency == Currency.EUR and amount_eur is not None and amount_xof is None:
            amount_xof = (amount_eur * exchange_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return amount_xof, amount_eur
