"""
Management command to load the reference data a fresh install needs.

Usage:
    python manage.py seed_reference_data
    python manage.py seed_reference_data --admin-email admin@svs.sn --admin-password secret

This creates (idempotently):
- One role per RoleName
- Payment methods (cash, transfer, cheque, mobile money)
- Expense categories (CAT-DEP-NNN)
- The operations catalog (OPE-NNN)
- Optionally an ADMIN superuser
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import Role, RoleName, User
from apps.expenses.models import ExpenseCategory, PaymentMethod
from apps.operations.models import Operation

PAYMENT_METHODS = [
    ('ESP', 'Espèces', 'Paiement en espèces'),
    ('VIR', 'Virement bancaire', 'Virement sur compte bancaire'),
    ('CHQ', 'Chèque', 'Paiement par chèque'),
    ('MOB', 'Mobile money', 'Wave, Orange Money'),
]

EXPENSE_CATEGORIES = [
    ('CAT-DEP-001', 'Carburant'),
    ('CAT-DEP-002', 'Fournitures de bureau'),
    ('CAT-DEP-003', 'Maintenance'),
    ('CAT-DEP-004', 'Frais portuaires'),
    ('CAT-DEP-005', 'Déplacements'),
]

OPERATIONS = [
    ('OPE-001', 'Avitaillement', Decimal('150000.00'), Decimal('228.67')),
    ('OPE-002', 'Assistance au mouillage', Decimal('250000.00'), Decimal('381.12')),
    ('OPE-003', 'Transport équipage', Decimal('75000.00'), Decimal('114.34')),
    ('OPE-004', 'Formalités douanières', Decimal('100000.00'), None),
    ('OPE-005', 'Livraison de pièces', Decimal('50000.00'), None),
]


class Command(BaseCommand):
    help = 'Create roles, payment methods, expense categories and the operations catalog'

    def add_arguments(self, parser):
        parser.add_argument('--admin-email', help='Create an ADMIN superuser with this email')
        parser.add_argument('--admin-password', help='Password for the ADMIN superuser')

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Seeding reference data...')

        self.create_roles()
        self.create_payment_methods()
        self.create_expense_categories()
        self.create_operations()

        if options['admin_email']:
            self.create_admin(options['admin_email'], options['admin_password'])

        self.stdout.write(self.style.SUCCESS('Reference data ready.'))

    def create_roles(self):
        self.stdout.write('  Creating roles...')
        for name, label in RoleName.choices:
            Role.objects.get_or_create(name=name, defaults={'description': label})

    def create_payment_methods(self):
        self.stdout.write('  Creating payment methods...')
        for code, name, description in PAYMENT_METHODS:
            PaymentMethod.objects.get_or_create(
                code=code,
                defaults={'name': name, 'description': description}
            )

    def create_expense_categories(self):
        self.stdout.write('  Creating expense categories...')
        for code, name in EXPENSE_CATEGORIES:
            ExpenseCategory.objects.get_or_create(code=code, defaults={'name': name})

    def create_operations(self):
        self.stdout.write('  Creating operations catalog...')
        for code, name, price_xof, price_eur in OPERATIONS:
            Operation.objects.get_or_create(
                code=code,
                defaults={'name': name, 'price_xof': price_xof, 'price_eur': price_eur}
            )

    def create_admin(self, email, password):
        if User.objects.filter(email__iexact=email).exists():
            self.stdout.write(f'  Admin {email} already exists, skipped')
            return
        User.objects.create_superuser(email=email, password=password)
        self.stdout.write(f'  Created admin {email}')
