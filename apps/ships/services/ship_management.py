"""Ship management service."""

import logging

from django.db import transaction

from apps.core.exceptions import BusinessRuleError
from apps.core.services import apply_changes, ensure_unique, get_for_update
from apps.ships.models import Ship

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = ('imo_number', 'mmsi_number', 'call_sign')


def _check_unique(data, exclude_pk=None):
    for field in UNIQUE_FIELDS:
        if field in data:
            ensure_unique(Ship, entity='Ship', field=field, value=data[field], exclude_pk=exclude_pk)


def _check_company(company):
    if company is not None and not company.active:
        raise BusinessRuleError(f"Company {company.name} is inactive")


@transaction.atomic
def create_ship(*, user=None, **data) -> Ship:
    """
    Register a ship for an active company.

    Raises:
        DuplicateResourceError: If IMO, MMSI or call sign is already registered
        BusinessRuleError: If the company is inactive
    """
    _check_unique(data)
    _check_company(data.get('company'))

    ship = Ship.objects.create(created_by=user, updated_by=user, **data)
    logger.info("Created ship %s for company id=%s", ship, ship.company_id)
    return ship


@transaction.atomic
def update_ship(*, ship_id: int, user=None, **changes) -> Ship:
    """
    Update a ship.

    Raises:
        ResourceNotFoundError: If ship does not exist
        DuplicateResourceError: If an identifier collides with another ship
        BusinessRuleError: If moved to an inactive company
    """
    ship = get_for_update(Ship, ship_id, 'Ship')
    _check_unique(changes, exclude_pk=ship.pk)
    if 'company' in changes and changes['company'].pk != ship.company_id:
        _check_company(changes['company'])

    apply_changes(ship, changes, user)
    logger.info("Updated ship %s", ship)
    return ship
