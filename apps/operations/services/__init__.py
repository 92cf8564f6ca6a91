"""Operations app services layer."""

from .operation_management import (
    create_operation,
    update_operation,
    toggle_operation_active,
    hard_delete_operation,
)

__all__ = [
    'create_operation',
    'update_operation',
    'toggle_operation_active',
    'hard_delete_operation',
]
