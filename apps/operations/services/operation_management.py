"""Operation catalog service."""

import logging

from django.db import transaction

from apps.core.exceptions import BusinessRuleError
from apps.core.numbering import create_with_generated_code
from apps.core.services import apply_changes, ensure_unique, get_for_update
from apps.operations.models import CODE_PREFIX, Operation

logger = logging.getLogger(__name__)


def create_operation(*, user=None, code: str = '', **data) -> Operation:
    """
    Create a catalog operation.

    When ``code`` is omitted the next ``OPE-NNN`` code is generated; an
    explicit code that is already taken is reported as a duplicate.

    Raises:
        DuplicateResourceError: If the code or name is already used
        ConfigurationFailureError: If no free code can be generated
    """
    ensure_unique(Operation, entity='Operation', field='name', value=data.get('name'))

    def insert(candidate):
        return Operation.objects.create(code=candidate, created_by=user, updated_by=user, **data)

    if code:
        ensure_unique(Operation, entity='Operation', field='code', value=code)
        with transaction.atomic():
            operation = insert(code)
    else:
        operation = create_with_generated_code(Operation, 'code', CODE_PREFIX, insert)

    logger.info("Created operation %s", operation)
    return operation


@transaction.atomic
def update_operation(*, operation_id: int, user=None, **changes) -> Operation:
    """
    Update a catalog operation.

    Raises:
        ResourceNotFoundError: If operation does not exist
        DuplicateResourceError: If the new code or name is taken
    """
    operation = get_for_update(Operation, operation_id, 'Operation')
    for field in ('code', 'name'):
        if changes.get(field):
            ensure_unique(Operation, entity='Operation', field=field, value=changes[field], exclude_pk=operation.pk)
        elif field in changes:
            changes.pop(field)

    apply_changes(operation, changes, user)
    logger.info("Updated operation %s", operation)
    return operation


@transaction.atomic
def toggle_operation_active(*, operation_id: int, user=None) -> Operation:
    """Flip the active flag of an operation."""
    operation = get_for_update(Operation, operation_id, 'Operation')
    if operation.active:
        operation.soft_delete(user)
    else:
        operation.restore(user)
    logger.info("Operation %s is now %s", operation.code, 'active' if operation.active else 'inactive')
    return operation


@transaction.atomic
def hard_delete_operation(*, operation_id: int) -> None:
    """
    Permanently delete an operation never billed on an invoice.

    Raises:
        BusinessRuleError: If invoice line items reference the operation
    """
    operation = get_for_update(Operation, operation_id, 'Operation')
    if operation.line_items.exists():
        raise BusinessRuleError(
            f"Operation {operation.code} is used on invoices and cannot be deleted"
        )
    operation.delete()
    logger.info("Permanently deleted operation id=%s", operation_id)
