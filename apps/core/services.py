"""Lookup and uniqueness helpers shared by the app service layers."""
from .exceptions import DuplicateResourceError, ResourceNotFoundError


def get_for_update(model, pk, entity=None):
    """
    Load ``model`` row ``pk`` locked for the rest of the transaction.

    Raises:
        ResourceNotFoundError: If no row has that primary key
    """
    try:
        return model._default_manager.select_for_update().get(pk=pk)
    except model.DoesNotExist:
        raise ResourceNotFoundError.for_entity(entity or model.__name__, pk)


def ensure_unique(model, *, entity, field, value, exclude_pk=None):
    """
    Raise DuplicateResourceError when another row already holds ``value``.

    Comparison is case-insensitive; blank values are never checked.
    """
    if value in (None, ''):
        return
    queryset = model._default_manager.filter(**{f'{field}__iexact': value})
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise DuplicateResourceError.for_field(entity, field, value)


def apply_changes(instance, changes, user=None):
    """Copy validated ``changes`` onto ``instance`` and save the touched fields."""
    for field, value in changes.items():
        setattr(instance, field, value)
    update_fields = list(changes) + ['updated_at']
    if user is not None and hasattr(instance, 'updated_by'):
        instance.updated_by = user
        update_fields.append('updated_by')
    instance.save(update_fields=update_fields)
    return instance
