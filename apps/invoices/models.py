from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import AuditedModel

from .calculations import compute_line_amounts, sum_line_amounts

INVOICE_NUMBER_PREFIX = 'FAC'
ZERO = Decimal('0')


class InvoiceStatus(models.TextChoices):
    BROUILLON = 'BROUILLON', 'Brouillon'
    EMISE = 'EMISE', 'Émise'
    PARTIELLEMENT_PAYEE = 'PARTIELLEMENT_PAYEE', 'Partiellement payée'
    PAYEE = 'PAYEE', 'Payée'
    EN_RETARD = 'EN_RETARD', 'En retard'
    ANNULEE = 'ANNULEE', 'Annulée'


class Invoice(AuditedModel):
    """
    Invoice issued to a shipping company for operations on one of its ships.

    ``total_xof`` / ``total_eur`` always equal the sum of the line items and
    are maintained by ``recalculate_totals``.
    """

    number = models.CharField(max_length=30, unique=True)
    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.PROTECT,
        related_name='invoices'
    )
    ship = models.ForeignKey(
        'ships.Ship',
        on_delete=models.PROTECT,
        related_name='invoices'
    )

    issue_date = models.DateField()
    due_date = models.DateField()

    # Totals (derived from line items)
    total_xof = models.DecimalField(max_digits=19, decimal_places=4, default=ZERO)
    total_eur = models.DecimalField(max_digits=19, decimal_places=4, null=True, blank=True)

    # Payments (derived from InvoicePayment rows)
    amount_paid_xof = models.DecimalField(max_digits=19, decimal_places=4, default=ZERO)
    paid_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(
        max_length=20,
        choices=InvoiceStatus.choices,
        default=InvoiceStatus.BROUILLON
    )
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'invoices'
        indexes = [
            models.Index(fields=['company', 'issue_date']),
            models.Index(fields=['ship', 'issue_date']),
            models.Index(fields=['status', 'due_date']),
            models.Index(fields=['issue_date']),
            models.Index(fields=['active']),
        ]
        ordering = ['-issue_date', '-created_at']

    def __str__(self):
        return f"{self.number} - {self.company} ({self.total_xof} XOF)"

    def recalculate_totals(self):
        """Recompute totals from the line items. Idempotent."""
        totals = sum_line_amounts(self.line_items.all())
        self.total_xof = totals.total_xof
        self.total_eur = totals.total_eur
        self.save(update_fields=['total_xof', 'total_eur', 'updated_at'])

    def recalculate_amount_paid(self):
        paid = self.payments.aggregate(total=models.Sum('amount_xof'))['total'] or ZERO
        self.amount_paid_xof = paid
        return paid

    def get_outstanding_balance(self):
        """Unpaid amount; never negative."""
        return max(ZERO, self.total_xof - self.amount_paid_xof)

    def get_overpaid_amount(self):
        return max(ZERO, self.amount_paid_xof - self.total_xof)


class InvoiceLineItem(models.Model):
    """One billed operation on an invoice; amounts are computed on save."""

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name='line_items'
    )
    operation = models.ForeignKey(
        'operations.Operation',
        on_delete=models.PROTECT,
        related_name='line_items'
    )
    description = models.CharField(max_length=255, blank=True)

    quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    unit_price_xof = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(ZERO)]
    )
    unit_price_eur = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(ZERO)]
    )

    amount_xof = models.DecimalField(max_digits=19, decimal_places=4, default=ZERO)
    amount_eur = models.DecimalField(max_digits=19, decimal_places=4, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'invoice_line_items'
        ordering = ['id']

    def __str__(self):
        return f"{self.operation} x {self.quantity}"

    def compute_amounts(self):
        amounts = compute_line_amounts(self.quantity, self.unit_price_xof, self.unit_price_eur)
        self.amount_xof = amounts.amount_xof
        self.amount_eur = amounts.amount_eur

    def save(self, *args, **kwargs):
        """Recompute own amounts, then the parent invoice totals."""
        self.compute_amounts()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'amount_xof', 'amount_eur', 'updated_at'}
        super().save(*args, **kwargs)
        self.invoice.recalculate_totals()

    def delete(self, *args, **kwargs):
        invoice = self.invoice
        result = super().delete(*args, **kwargs)
        invoice.recalculate_totals()
        return result


class InvoicePayment(models.Model):
    """Payment received against an invoice."""

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name='payments'
    )
    amount_xof = models.DecimalField(
        max_digits=19,
        decimal_places=4,
        validators=[MinValueValidator(Decimal('0.0001'))]
    )
    paid_on = models.DateField(default=timezone.localdate)
    payment_method = models.ForeignKey(
        'expenses.PaymentMethod',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoice_payments'
    )
    reference = models.CharField(max_length=100, blank=True)
    note = models.CharField(max_length=500, blank=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'invoice_payments'
        ordering = ['paid_on', 'id']

    def __str__(self):
        return f"{self.invoice.number}: {self.amount_xof} XOF on {self.paid_on}"
