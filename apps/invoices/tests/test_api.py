from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from apps.invoices.models import Invoice, InvoiceStatus
from apps.invoices.services import record_invoice_payment


@pytest.mark.django_db
class TestInvoiceCrudApi:
    """Tests for /api/invoices/"""

    def _payload(self, company, ship, operation, today, **overrides):
        data = {
            'company': company.pk,
            'ship': ship.pk,
            'issue_date': today.isoformat(),
            'due_date': (today + timedelta(days=30)).isoformat(),
            'line_items': [{'operation': operation.pk, 'quantity': '2.5'}],
        }
        data.update(overrides)
        return data

    def test_create(self, operator_client, company, ship, operation, today):
        response = operator_client.post(
            reverse('invoices:invoice-list'),
            self._payload(company, ship, operation, today),
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['number'] == f'FAC-{today.year}-001'
        assert response.data['status'] == InvoiceStatus.BROUILLON
        assert Decimal(response.data['total_xof']) == Decimal('2500')
        assert Decimal(response.data['total_eur']) == Decimal('3.80')
        assert len(response.data['line_items']) == 1
        assert response.data['company']['name'] == company.name

    def test_create_due_before_issue(self, operator_client, company, ship, operation, today):
        payload = self._payload(company, ship, operation, today, due_date=(today - timedelta(days=1)).isoformat())

        response = operator_client.post(reverse('invoices:invoice-list'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'validation_failure'
        assert 'due_date' in response.data['details']

    def test_create_ship_of_other_company(self, operator_client, company, other_ship, operation, today):
        response = operator_client.post(
            reverse('invoices:invoice-list'),
            self._payload(company, other_ship, operation, today),
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'validation_failure'
        assert 'ship' in response.data['details']
        assert not Invoice.objects.exists()

    def test_create_zero_quantity(self, operator_client, company, ship, operation, today):
        payload = self._payload(company, ship, operation, today, line_items=[
            {'operation': operation.pk, 'quantity': '0'},
        ])

        response = operator_client.post(reverse('invoices:invoice-list'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_viewer_cannot_create(self, viewer_client):
        response = viewer_client.post(reverse('invoices:invoice-list'), {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('invoices:invoice-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_retrieve(self, viewer_client, draft_invoice):
        url = reverse('invoices:invoice-detail', kwargs={'pk': draft_invoice.pk})

        response = viewer_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['number'] == draft_invoice.number
        assert Decimal(response.data['outstanding_xof']) == Decimal('2500')

    def test_retrieve_missing(self, viewer_client):
        response = viewer_client.get(reverse('invoices:invoice-detail', kwargs={'pk': 999}))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'resource_not_found'

    def test_update_draft(self, operator_client, draft_invoice):
        url = reverse('invoices:invoice-detail', kwargs={'pk': draft_invoice.pk})

        response = operator_client.patch(url, {'notes': 'Escale de nuit'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['notes'] == 'Escale de nuit'

    def test_update_refuses_line_items(self, operator_client, draft_invoice, operation):
        url = reverse('invoices:invoice-detail', kwargs={'pk': draft_invoice.pk})

        response = operator_client.patch(url, {
            'line_items': [{'operation': operation.pk, 'quantity': '1'}],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'line_items' in response.data['details']

    def test_update_issued_invoice(self, operator_client, issued_invoice):
        url = reverse('invoices:invoice-detail', kwargs={'pk': issued_invoice.pk})

        response = operator_client.patch(url, {'notes': 'trop tard'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'business_rule_violation'

    def test_manager_deletes_draft(self, manager_client, draft_invoice):
        url = reverse('invoices:invoice-detail', kwargs={'pk': draft_invoice.pk})

        response = manager_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        draft_invoice.refresh_from_db()
        assert draft_invoice.active is False

    def test_deleted_invoice_rejects_workflow(self, manager_client, draft_invoice):
        manager_client.delete(reverse('invoices:invoice-detail', kwargs={'pk': draft_invoice.pk}))

        emit = manager_client.post(reverse('invoices:invoice-emit', kwargs={'pk': draft_invoice.pk}))
        pay = manager_client.post(
            reverse('invoices:invoice-payments', kwargs={'pk': draft_invoice.pk}),
            {'amount_xof': '10.00'},
            format='json',
        )

        assert emit.status_code == status.HTTP_404_NOT_FOUND
        assert pay.status_code == status.HTTP_404_NOT_FOUND
        draft_invoice.refresh_from_db()
        assert draft_invoice.status == InvoiceStatus.BROUILLON

    def test_operator_cannot_delete(self, operator_client, draft_invoice):
        url = reverse('invoices:invoice-detail', kwargs={'pk': draft_invoice.pk})

        response = operator_client.delete(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestInvoiceListApi:

    def test_list_hides_deleted(self, viewer_client, make_invoice):
        kept = make_invoice()
        deleted = make_invoice()
        deleted.soft_delete()

        response = viewer_client.get(reverse('invoices:invoice-list'))

        assert response.status_code == status.HTTP_200_OK
        assert [i['number'] for i in response.data['results']] == [kept.number]

    def test_filter_by_effective_status(self, viewer_client, past_due_invoice, issued_invoice):
        response = viewer_client.get(reverse('invoices:invoice-list'), {'status': InvoiceStatus.EN_RETARD})

        results = response.data['results']
        assert [i['number'] for i in results] == [past_due_invoice.number]
        assert results[0]['status'] == InvoiceStatus.EN_RETARD
        assert results[0]['stored_status'] == InvoiceStatus.EMISE

    def test_filter_issued_excludes_past_due(self, viewer_client, past_due_invoice, issued_invoice):
        response = viewer_client.get(reverse('invoices:invoice-list'), {'status': InvoiceStatus.EMISE})

        assert [i['number'] for i in response.data['results']] == [issued_invoice.number]

    def test_filter_by_company(self, viewer_client, draft_invoice, other_company):
        response = viewer_client.get(reverse('invoices:invoice-list'), {'company': other_company.pk})

        assert response.data['count'] == 0

    def test_filter_by_amount(self, viewer_client, draft_invoice):
        url = reverse('invoices:invoice-list')

        assert viewer_client.get(url, {'min_amount': '2000'}).data['count'] == 1
        assert viewer_client.get(url, {'max_amount': '2000'}).data['count'] == 0

    def test_inverted_date_range(self, viewer_client, today):
        response = viewer_client.get(reverse('invoices:invoice-list'), {
            'date_from': today.isoformat(),
            'date_to': (today - timedelta(days=1)).isoformat(),
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'date_to' in response.data['details']

    def test_search(self, viewer_client, draft_invoice, ship):
        response = viewer_client.get(reverse('invoices:invoice-list'), {'search': 'teranga'})

        assert [i['ship_name'] for i in response.data['results']] == [ship.name]

    def test_overdue(self, viewer_client, past_due_invoice, issued_invoice):
        response = viewer_client.get(reverse('invoices:invoice-overdue'))

        assert response.status_code == status.HTTP_200_OK
        assert [i['number'] for i in response.data['results']] == [past_due_invoice.number]

    def test_by_number(self, viewer_client, draft_invoice):
        url = reverse('invoices:invoice-by-number', kwargs={'number': draft_invoice.number})

        response = viewer_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == draft_invoice.pk

    def test_by_unknown_number(self, viewer_client):
        url = reverse('invoices:invoice-by-number', kwargs={'number': 'FAC-1999-999'})

        response = viewer_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_stats(self, viewer_client, issued_invoice, past_due_invoice):
        response = viewer_client.get(reverse('invoices:invoice-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_count'] == 2
        assert response.data['overdue_count'] == 1
        assert Decimal(response.data['total_invoiced_xof']) == Decimal('5000')

    def test_monthly_stats(self, viewer_client, issued_invoice, today):
        response = viewer_client.get(reverse('invoices:invoice-monthly-stats'), {'months': 6})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 6
        assert response.data[-1]['month'] == today.strftime('%Y-%m')
        assert response.data[-1]['count'] == 1
        assert Decimal(response.data[-1]['amount_xof']) == Decimal('2500')

    def test_monthly_stats_rejects_bad_window(self, viewer_client):
        response = viewer_client.get(reverse('invoices:invoice-monthly-stats'), {'months': 0})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_company_and_operation_stats(self, viewer_client, issued_invoice, company, operation):
        companies = viewer_client.get(reverse('invoices:invoice-company-stats'))
        operations = viewer_client.get(reverse('invoices:invoice-operation-stats'), {'limit': 3})

        assert companies.status_code == status.HTTP_200_OK
        assert companies.data[0]['company_id'] == company.pk
        assert Decimal(companies.data[0]['amount_xof']) == Decimal('2500')
        assert operations.status_code == status.HTTP_200_OK
        assert operations.data[0]['operation_code'] == operation.code
        assert Decimal(operations.data[0]['quantity']) == Decimal('2.5')

    def test_stats_require_authentication(self, api_client):
        response = api_client.get(reverse('invoices:invoice-company-stats'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestLineItemApi:

    def test_add_line(self, operator_client, draft_invoice, operation_xof_only):
        url = reverse('invoices:invoice-add-line', kwargs={'pk': draft_invoice.pk})

        response = operator_client.post(url, {'operation': operation_xof_only.pk, 'quantity': '2'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.data['line_items']) == 2
        assert Decimal(response.data['total_xof']) == Decimal('152500')

    def test_update_line(self, operator_client, draft_invoice):
        line = draft_invoice.line_items.get()
        url = reverse('invoices:invoice-update-line', kwargs={'pk': draft_invoice.pk, 'line_id': line.pk})

        response = operator_client.patch(url, {'quantity': '1'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['total_xof']) == Decimal('1000')

    def test_change_line_operation(self, operator_client, draft_invoice, operation_xof_only):
        line = draft_invoice.line_items.get()
        url = reverse('invoices:invoice-update-line', kwargs={'pk': draft_invoice.pk, 'line_id': line.pk})

        response = operator_client.patch(url, {'operation': operation_xof_only.pk}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['total_xof']) == Decimal('187500')
        assert response.data['total_eur'] is None

    def test_remove_line(self, operator_client, draft_invoice):
        line = draft_invoice.line_items.get()
        url = reverse('invoices:invoice-update-line', kwargs={'pk': draft_invoice.pk, 'line_id': line.pk})

        response = operator_client.delete(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['line_items'] == []
        assert Decimal(response.data['total_xof']) == Decimal('0')

    def test_remove_unknown_line(self, operator_client, draft_invoice):
        url = reverse('invoices:invoice-update-line', kwargs={'pk': draft_invoice.pk, 'line_id': 999})

        response = operator_client.delete(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_lines_of_issued_invoice(self, operator_client, issued_invoice, operation):
        url = reverse('invoices:invoice-add-line', kwargs={'pk': issued_invoice.pk})

        response = operator_client.post(url, {'operation': operation.pk, 'quantity': '1'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'business_rule_violation'

    def test_viewer_cannot_add_line(self, viewer_client, draft_invoice, operation):
        url = reverse('invoices:invoice-add-line', kwargs={'pk': draft_invoice.pk})

        response = viewer_client.post(url, {'operation': operation.pk, 'quantity': '1'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestInvoiceWorkflowApi:

    def test_emit(self, manager_client, draft_invoice):
        url = reverse('invoices:invoice-emit', kwargs={'pk': draft_invoice.pk})

        response = manager_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == InvoiceStatus.EMISE

    def test_operator_cannot_emit(self, operator_client, draft_invoice):
        url = reverse('invoices:invoice-emit', kwargs={'pk': draft_invoice.pk})

        response = operator_client.post(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_emit_twice_is_conflict(self, manager_client, issued_invoice):
        url = reverse('invoices:invoice-emit', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'invalid_transition'
        assert response.data['details'] == {
            'current': InvoiceStatus.EMISE,
            'requested': InvoiceStatus.EMISE,
        }

    def test_record_payment(self, manager_client, issued_invoice, payment_method, manager_user):
        url = reverse('invoices:invoice-payments', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url, {
            'amount_xof': '1000.00',
            'payment_method': payment_method.pk,
            'reference': 'VIR-2026-118',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == InvoiceStatus.PARTIELLEMENT_PAYEE
        assert Decimal(response.data['outstanding_xof']) == Decimal('1500')
        payment = response.data['payments'][0]
        assert payment['reference'] == 'VIR-2026-118'
        assert payment['recorded_by']['id'] == str(manager_user.pk)

    def test_overpayment(self, manager_client, issued_invoice):
        url = reverse('invoices:invoice-payments', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url, {'amount_xof': '3000.00'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == InvoiceStatus.PAYEE
        assert Decimal(response.data['overpaid_xof']) == Decimal('500')

    def test_payment_on_paid_invoice(self, manager_client, issued_invoice):
        record_invoice_payment(invoice_id=issued_invoice.pk, amount_xof=Decimal('2500'))
        url = reverse('invoices:invoice-payments', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url, {'amount_xof': '10.00'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_payment_on_invoice_without_lines(self, manager_client, make_invoice):
        invoice = make_invoice(line_items=[])
        url = reverse('invoices:invoice-payments', kwargs={'pk': invoice.pk})

        response = manager_client.post(url, {'amount_xof': '10.00'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'business_rule_violation'

    def test_list_payments(self, viewer_client, issued_invoice):
        record_invoice_payment(invoice_id=issued_invoice.pk, amount_xof=Decimal('400'))
        url = reverse('invoices:invoice-payments', kwargs={'pk': issued_invoice.pk})

        response = viewer_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [Decimal(p['amount_xof']) for p in response.data] == [Decimal('400')]

    def test_viewer_cannot_record_payment(self, viewer_client, issued_invoice):
        url = reverse('invoices:invoice-payments', kwargs={'pk': issued_invoice.pk})

        response = viewer_client.post(url, {'amount_xof': '10.00'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_mark_paid(self, manager_client, issued_invoice):
        url = reverse('invoices:invoice-mark-paid', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == InvoiceStatus.PAYEE
        assert response.data['paid_at'] is not None

    def test_cancel(self, manager_client, issued_invoice):
        url = reverse('invoices:invoice-cancel', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url, {'reason': 'Navire non arrivé'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == InvoiceStatus.ANNULEE
        assert 'Navire non arrivé' in response.data['notes']

    def test_cancel_without_reason(self, manager_client, issued_invoice):
        url = reverse('invoices:invoice-cancel', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url, {'reason': ''}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'reason' in response.data['details']

    def test_past_due_reads_as_late(self, viewer_client, past_due_invoice):
        url = reverse('invoices:invoice-detail', kwargs={'pk': past_due_invoice.pk})

        response = viewer_client.get(url)

        assert response.data['status'] == InvoiceStatus.EN_RETARD
        assert response.data['stored_status'] == InvoiceStatus.EMISE
        past_due_invoice.refresh_from_db()
        assert past_due_invoice.status == InvoiceStatus.EMISE

    def test_mark_overdue(self, manager_client, past_due_invoice):
        url = reverse('invoices:invoice-mark-overdue', kwargs={'pk': past_due_invoice.pk})

        response = manager_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['stored_status'] == InvoiceStatus.EN_RETARD

    def test_mark_overdue_not_due(self, manager_client, issued_invoice):
        url = reverse('invoices:invoice-mark-overdue', kwargs={'pk': issued_invoice.pk})

        response = manager_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_overdue_is_admin_only(self, manager_client, admin_client, past_due_invoice):
        url = reverse('invoices:invoice-update-overdue')

        assert manager_client.post(url).status_code == status.HTTP_403_FORBIDDEN

        response = admin_client.post(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'updated': 1}
