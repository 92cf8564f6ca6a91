from datetime import timedelta

import pytest
from django.utils import timezone

from apps.accounts.models import RoleName, User


@pytest.fixture
def user(db):
    """Create and return an operator able to log in."""
    return User.objects.create_user(
        email='moussa@svs.example',
        password='TestPass123!',
        first_name='Moussa',
        last_name='Diop',
        roles=[RoleName.OPERATOR],
    )


@pytest.fixture
def user_inactive(db):
    """Create and return a deactivated user."""
    return User.objects.create_user(
        email='inactive@svs.example',
        password='TestPass123!',
        is_active=False,
    )


@pytest.fixture
def user_locked(db):
    """Create and return a user locked for the next ten minutes."""
    return User.objects.create_user(
        email='locked@svs.example',
        password='TestPass123!',
        account_locked_until=timezone.now() + timedelta(minutes=10),
    )
