from django.db import models

from apps.core.models import AuditedModel


class Company(AuditedModel):
    """Shipping company billed for maritime operations."""

    name = models.CharField(max_length=100)
    legal_name = models.CharField(max_length=150)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100)
    phone = models.CharField(max_length=20)
    email = models.EmailField(max_length=100, unique=True)

    # Main contact
    contact_name = models.CharField(max_length=100, blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)
    contact_email = models.EmailField(max_length=100, blank=True)

    # Trade register and tax identifiers
    rccm = models.CharField(max_length=50, unique=True, null=True, blank=True)
    ninea = models.CharField(max_length=50, unique=True, null=True, blank=True)

    website = models.URLField(max_length=200, blank=True)

    class Meta:
        db_table = 'companies'
        verbose_name_plural = 'companies'
        indexes = [
            models.Index(fields=['name']),
            models.Index(fields=['country']),
            models.Index(fields=['active']),
        ]
        ordering = ['name']

    def __str__(self):
        return self.name
