"""Fixtures shared by every app's tests: users per role, API clients, reference data."""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import RoleName, User
from apps.companies.models import Company
from apps.expenses.models import ExpenseCategory, ExpenseSupplier, PaymentMethod
from apps.operations.models import Operation
from apps.ships.models import Ship, ShipFlag, ShipType

PASSWORD = 'TestPass123!'


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@svs.example',
        password=PASSWORD,
        roles=[RoleName.ADMIN],
    )


@pytest.fixture
def manager_user(db):
    return User.objects.create_user(
        email='manager@svs.example',
        password=PASSWORD,
        first_name='Awa',
        last_name='Ndiaye',
        roles=[RoleName.MANAGER],
    )


@pytest.fixture
def operator_user(db):
    return User.objects.create_user(
        email='operator@svs.example',
        password=PASSWORD,
        roles=[RoleName.OPERATOR],
    )


@pytest.fixture
def viewer_user(db):
    return User.objects.create_user(
        email='viewer@svs.example',
        password=PASSWORD,
        roles=[RoleName.VIEWER],
    )


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def manager_client(manager_user):
    return _client_for(manager_user)


@pytest.fixture
def operator_client(operator_user):
    return _client_for(operator_user)


@pytest.fixture
def viewer_client(viewer_user):
    return _client_for(viewer_user)


# =============================================================================
# Reference data
# =============================================================================

@pytest.fixture
def company(db):
    return Company.objects.create(
        name='Atlantic Shipping',
        legal_name='Atlantic Shipping SA',
        address='12 Boulevard de la Libération',
        city='Dakar',
        country='Sénégal',
        phone='+221330000001',
        email='contact@atlantic.example',
        rccm='SN-DKR-2020-B-001',
        ninea='001234567',
    )


@pytest.fixture
def other_company(db):
    return Company.objects.create(
        name='Gorée Marine',
        legal_name='Gorée Marine SARL',
        address='Port Autonome',
        country='Sénégal',
        phone='+221330000002',
        email='info@goree.example',
    )


@pytest.fixture
def ship(company):
    return Ship.objects.create(
        name='MV Teranga',
        imo_number='9123456',
        mmsi_number='663123456',
        call_sign='6VAB1',
        flag=ShipFlag.SENEGAL,
        ship_type=ShipType.CARGO,
        company=company,
    )


@pytest.fixture
def other_ship(other_company):
    return Ship.objects.create(
        name='MV Casamance',
        imo_number='9654321',
        mmsi_number='663654321',
        call_sign='6VCD2',
        flag=ShipFlag.SENEGAL,
        ship_type=ShipType.CARGO,
        company=other_company,
    )


@pytest.fixture
def operation(db):
    return Operation.objects.create(
        code='OPE-001',
        name='Avitaillement',
        price_xof=Decimal('1000.00'),
        price_eur=Decimal('1.52'),
    )


@pytest.fixture
def operation_xof_only(db):
    return Operation.objects.create(
        code='OPE-002',
        name='Transport équipage',
        price_xof=Decimal('75000.00'),
    )


@pytest.fixture
def payment_method(db):
    return PaymentMethod.objects.create(name='Virement bancaire', code='VIR')


@pytest.fixture
def expense_category(db):
    return ExpenseCategory.objects.create(code='CAT-DEP-001', name='Carburant')


@pytest.fixture
def supplier(db):
    return ExpenseSupplier.objects.create(name='Total Sénégal')


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)
