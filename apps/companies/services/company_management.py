"""Company management service."""

import logging

from django.db import transaction

from apps.companies.models import Company
from apps.core.exceptions import BusinessRuleError
from apps.core.services import apply_changes, ensure_unique, get_for_update

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = ('email', 'rccm', 'ninea')


def _normalize(data):
    # Unique optional identifiers are stored as NULL, never as ''
    for field in ('rccm', 'ninea'):
        if field in data and not data[field]:
            data[field] = None
    return data


def _check_unique(data, exclude_pk=None):
    for field in UNIQUE_FIELDS:
        if field in data:
            ensure_unique(Company, entity='Company', field=field, value=data[field], exclude_pk=exclude_pk)


@transaction.atomic
def create_company(*, user=None, **data) -> Company:
    """
    Create a company.

    Raises:
        DuplicateResourceError: If email, RCCM or NINEA is already registered
    """
    data = _normalize(dict(data))
    _check_unique(data)

    company = Company.objects.create(created_by=user, updated_by=user, **data)
    logger.info("Created company %s (id=%s)", company.name, company.pk)
    return company


@transaction.atomic
def update_company(*, company_id: int, user=None, **changes) -> Company:
    """
    Update a company.

    Raises:
        ResourceNotFoundError: If company does not exist
        DuplicateResourceError: If a unique identifier collides with another company
    """
    company = get_for_update(Company, company_id, 'Company')
    changes = _normalize(dict(changes))
    _check_unique(changes, exclude_pk=company.pk)

    apply_changes(company, changes, user)
    logger.info("Updated company %s (id=%s)", company.name, company.pk)
    return company


@transaction.atomic
def hard_delete_company(*, company_id: int) -> None:
    """
    Permanently delete a company that nothing references.

    Raises:
        BusinessRuleError: If ships or invoices still reference the company
    """
    company = get_for_update(Company, company_id, 'Company')

    if company.ships.exists() or company.invoices.exists():
        raise BusinessRuleError(
            f"Company {company.name} still has ships or invoices and cannot be deleted"
        )

    company.delete()
    logger.info("Permanently deleted company id=%s", company_id)
