"""
Companies app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and row locks.
"""

from .company_management import (
    create_company,
    update_company,
    hard_delete_company,
)

__all__ = [
    'create_company',
    'update_company',
    'hard_delete_company',
]
