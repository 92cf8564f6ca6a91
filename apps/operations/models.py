from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import AuditedModel

CODE_PREFIX = 'OPE'


class Operation(AuditedModel):
    """Billable maritime service with a reference price in XOF (and optionally EUR)."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)

    price_xof = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    price_eur = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    class Meta:
        db_table = 'operations'
        indexes = [
            models.Index(fields=['name']),
            models.Index(fields=['active']),
        ]
        ordering = ['code']

    def __str__(self):
        return f"{self.code} - {self.name}"
