from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from apps.expenses.models import Expense, ExpenseStatus
from apps.expenses.services import approve_expense, submit_expense


@pytest.mark.django_db
class TestExpenseApi:
    """Tests for /api/expenses/"""

    def test_create(self, operator_client, expense_category, payment_method, today):
        response = operator_client.post(reverse('expenses:expense-list'), {
            'title': 'Carburant vedette',
            'category': expense_category.pk,
            'payment_method': payment_method.pk,
            'expense_date': today.isoformat(),
            'amount_xof': '25000.00',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == ExpenseStatus.BROUILLON
        assert response.data['number'].startswith(f'DEP-{today:%Y%m%d}-')

    def test_create_without_amount(self, operator_client, expense_category, payment_method, today):
        response = operator_client.post(reverse('expenses:expense-list'), {
            'title': 'Carburant vedette',
            'category': expense_category.pk,
            'payment_method': payment_method.pk,
            'expense_date': today.isoformat(),
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'validation_failure'

    def test_viewer_cannot_create(self, viewer_client):
        response = viewer_client.post(reverse('expenses:expense-list'), {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_operator_submits_but_cannot_approve(self, operator_client, expense):
        url = reverse('expenses:expense-submit', kwargs={'pk': expense.pk})
        response = operator_client.post(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == ExpenseStatus.EN_ATTENTE

        url = reverse('expenses:expense-approve', kwargs={'pk': expense.pk})
        response = operator_client.post(url)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_manager_approves(self, manager_client, expense, manager_user):
        submit_expense(expense_id=expense.pk)

        url = reverse('expenses:expense-approve', kwargs={'pk': expense.pk})
        response = manager_client.post(url, {'comment': 'OK'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == ExpenseStatus.VALIDEE
        expense.refresh_from_db()
        assert expense.validated_by == manager_user

    def test_reject_without_comment(self, manager_client, expense):
        submit_expense(expense_id=expense.pk)

        url = reverse('expenses:expense-reject', kwargs={'pk': expense.pk})
        response = manager_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'comment' in response.data['details']

    def test_invalid_transition_is_conflict(self, manager_client, expense):
        url = reverse('expenses:expense-mark-paid', kwargs={'pk': expense.pk})
        response = manager_client.post(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['details'] == {
            'current': ExpenseStatus.BROUILLON,
            'requested': ExpenseStatus.PAYEE,
        }

    def test_generic_status_endpoint(self, manager_client, expense):
        url = reverse('expenses:expense-change-status', kwargs={'pk': expense.pk})
        response = manager_client.post(url, {'status': ExpenseStatus.ANNULEE}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == ExpenseStatus.ANNULEE

    def test_approved_expense_back_to_pending_is_conflict(self, manager_client, expense):
        submit_expense(expense_id=expense.pk)
        approve_expense(expense_id=expense.pk)
        url = reverse('expenses:expense-change-status', kwargs={'pk': expense.pk})

        response = manager_client.post(url, {'status': ExpenseStatus.EN_ATTENTE}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['details'] == {
            'current': ExpenseStatus.VALIDEE,
            'requested': ExpenseStatus.EN_ATTENTE,
        }

    def test_filter_by_status(self, viewer_client, make_expense):
        draft = make_expense()
        pending = make_expense()
        submit_expense(expense_id=pending.pk)

        response = viewer_client.get(reverse('expenses:expense-list'), {'status': ExpenseStatus.EN_ATTENTE})

        numbers = [e['number'] for e in response.data['results']]
        assert numbers == [pending.number]
        assert draft.number not in numbers

    def test_pending(self, viewer_client, make_expense):
        make_expense()
        pending = make_expense()
        submit_expense(expense_id=pending.pk)

        response = viewer_client.get(reverse('expenses:expense-pending'))

        assert response.status_code == status.HTTP_200_OK
        assert [e['number'] for e in response.data['results']] == [pending.number]

    def test_by_number(self, viewer_client, expense):
        url = reverse('expenses:expense-by-number', kwargs={'number': expense.number})
        response = viewer_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == expense.pk

    def test_by_unknown_number(self, viewer_client):
        url = reverse('expenses:expense-by-number', kwargs={'number': 'DEP-19990101-001'})
        response = viewer_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_stats(self, viewer_client, make_expense):
        make_expense(amount_xof=Decimal('1000.00'))

        response = viewer_client.get(reverse('expenses:expense-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_count'] == 1
        assert Decimal(response.data['total_amount_xof']) == Decimal('1000.00')

    def test_monthly_stats(self, viewer_client, make_expense, today):
        make_expense(amount_xof=Decimal('1000.00'))

        response = viewer_client.get(reverse('expenses:expense-monthly-stats'), {'months': 3})

        assert response.status_code == status.HTTP_200_OK
        assert [entry['count'] for entry in response.data] == [0, 0, 1]
        assert response.data[-1]['month'] == today.strftime('%Y-%m')

    def test_category_stats(self, viewer_client, make_expense, expense_category):
        make_expense(amount_xof=Decimal('1000.00'))

        response = viewer_client.get(reverse('expenses:expense-category-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]['category_id'] == expense_category.pk
        assert Decimal(response.data[0]['amount_xof']) == Decimal('1000.00')

    def test_destroy_is_soft(self, manager_client, expense):
        url = reverse('expenses:expense-detail', kwargs={'pk': expense.pk})
        response = manager_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert Expense.objects.filter(pk=expense.pk, active=False).exists()


@pytest.mark.django_db
class TestReferenceDataApi:

    def test_create_category_generates_code(self, operator_client):
        response = operator_client.post(
            reverse('expenses:category-list'),
            {'name': 'Fournitures de bureau'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['code'] == 'CAT-DEP-001'

    def test_duplicate_payment_method_code(self, operator_client, payment_method):
        response = operator_client.post(
            reverse('expenses:payment-method-list'),
            {'name': 'Autre virement', 'code': payment_method.code},
            format='json',
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['details'] == {'field': 'code'}

    def test_supplier_listing_search(self, viewer_client, supplier):
        response = viewer_client.get(reverse('expenses:supplier-list'), {'search': 'total'})

        assert [s['name'] for s in response.data['results']] == [supplier.name]

    def test_deactivate_payment_method(self, admin_client, payment_method):
        url = reverse('expenses:payment-method-deactivate', kwargs={'pk': payment_method.pk})
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['active'] is False
