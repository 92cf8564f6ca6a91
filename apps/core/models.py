from django.conf import settings
from django.db import models


class AuditedModel(models.Model):
    """
    Abstract base carrying audit columns and the soft-delete flag.

    ``active=False`` hides a row from default listings without removing it, so
    anything referencing it keeps working.
    """

    # Soft delete
    active = models.BooleanField(default=True, db_index=True)

    # Audit trail
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    class Meta:
        abstract = True

    def soft_delete(self, user=None):
        """Hide the row from default listings."""
        self._set_active(False, user)

    def restore(self, user=None):
        """Undo a soft delete."""
        self._set_active(True, user)

    def _set_active(self, value, user):
        self.active = value
        self.updated_by = user
        self.save(update_fields=['active', 'updated_by', 'updated_at'])
