from django.db.models import Q
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.permissions import crud_operations
from apps.core.viewsets import ServiceModelViewSet

from .models import Invoice, InvoiceStatus
from .serializers import (
    BreakdownFilterSerializer,
    CancelInputSerializer,
    CompanyBreakdownSerializer,
    InvoiceFilterSerializer,
    InvoiceInputSerializer,
    InvoiceListSerializer,
    InvoicePaymentSerializer,
    InvoiceSerializer,
    InvoiceStatisticsSerializer,
    LineItemInputSerializer,
    MarkPaidInputSerializer,
    MonthlyEvolutionFilterSerializer,
    MonthlyInvoiceSerializer,
    OperationBreakdownSerializer,
    OverdueUpdateResultSerializer,
    PaymentInputSerializer,
    StatisticsFilterSerializer,
)
from .services import (
    add_line_item,
    cancel_invoice,
    create_invoice,
    delete_invoice,
    emit_invoice,
    get_company_breakdown,
    get_invoice_by_number,
    get_invoice_statistics,
    get_monthly_invoice_evolution,
    get_operation_breakdown,
    mark_invoice_overdue,
    mark_invoice_paid,
    record_invoice_payment,
    remove_line_item,
    update_invoice,
    update_line_item,
    update_overdue_invoices,
)
from .workflow import effective_status_filter


class InvoiceViewSet(ServiceModelViewSet):
    """
    ViewSet for invoices.

    list: Active invoices, filterable by company, ship, effective status, dates, amounts
    create: New BROUILLON invoice (with optional line items) numbered FAC-YYYY-NNN
    update: Header fields, only while BROUILLON
    destroy: Soft delete (BROUILLON or ANNULEE only)
    lines: Add / change / remove line items of a draft
    emit / payments / mark_paid / cancel / mark_overdue: Workflow
    update_overdue: Persist EN_RETARD on every past-due invoice
    stats: Totals per effective status; monthly, per company and per operation breakdowns
    overdue: Invoices currently past due
    """

    queryset = Invoice.objects.select_related('company', 'ship').prefetch_related(
        'line_items__operation',
        'payments__recorded_by',
        'payments__payment_method',
    )
    input_serializer_class = InvoiceInputSerializer
    output_serializer_class = InvoiceSerializer
    list_serializer_class = InvoiceListSerializer
    filter_serializer_class = InvoiceFilterSerializer
    operation_permissions = {
        **crud_operations('invoice'),
        'add_line': 'invoice.write',
        'update_line': 'invoice.write',
        'remove_line': 'invoice.write',
        'emit': 'invoice.transition',
        'payments': 'invoice.read',
        'record_payment': 'invoice.transition',
        'mark_paid': 'invoice.transition',
        'cancel': 'invoice.transition',
        'mark_overdue': 'invoice.transition',
        'update_overdue': 'invoice.admin',
        'stats': 'invoice.read',
        'monthly_stats': 'invoice.read',
        'company_stats': 'invoice.read',
        'operation_stats': 'invoice.read',
        'overdue': 'invoice.read',
        'by_number': 'invoice.read',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        params = self.get_filter_params()
        active = params.get('active')
        queryset = queryset.filter(active=True if active is None else active)

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(number__icontains=search) |
                Q(notes__icontains=search) |
                Q(company__name__icontains=search) |
                Q(ship__name__icontains=search)
            )
        for field in ('company', 'ship'):
            if params.get(field):
                queryset = queryset.filter(**{f'{field}_id': params[field]})
        if params.get('status'):
            queryset = queryset.filter(effective_status_filter(params['status'], timezone.localdate()))

        if params.get('date_from'):
            queryset = queryset.filter(issue_date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(issue_date__lte=params['date_to'])
        if params.get('min_amount') is not None:
            queryset = queryset.filter(total_xof__gte=params['min_amount'])
        if params.get('max_amount') is not None:
            queryset = queryset.filter(total_xof__lte=params['max_amount'])

        return queryset

    def _reload(self, invoice_id):
        return self.queryset.get(pk=invoice_id)

    def create_instance(self, data):
        invoice = create_invoice(user=self.request.user, **data)
        return self._reload(invoice.pk)

    def update_instance(self, instance, data):
        update_invoice(invoice_id=instance.pk, user=self.request.user, **data)
        return self._reload(instance.pk)

    def delete_instance(self, instance):
        delete_invoice(invoice_id=instance.pk, user=self.request.user)

    # Line items

    @extend_schema(request=LineItemInputSerializer, responses={201: InvoiceSerializer})
    @action(detail=True, methods=['post'], url_path='lines')
    def add_line(self, request, pk=None):
        """POST /api/invoices/{id}/lines/"""
        invoice = self.get_object()
        serializer = LineItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        add_line_item(invoice_id=invoice.pk, user=request.user, **serializer.validated_data)
        return self.output(self._reload(invoice.pk), status.HTTP_201_CREATED)

    @extend_schema(request=LineItemInputSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=['patch'], url_path=r'lines/(?P<line_id>[^/.]+)')
    def update_line(self, request, pk=None, line_id=None):
        """PATCH /api/invoices/{id}/lines/{line_id}/"""
        invoice = self.get_object()
        serializer = LineItemInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update_line_item(
            invoice_id=invoice.pk,
            line_id=line_id,
            user=request.user,
            **serializer.validated_data
        )
        return self.output(self._reload(invoice.pk))

    @update_line.mapping.delete
    def remove_line(self, request, pk=None, line_id=None):
        """DELETE /api/invoices/{id}/lines/{line_id}/"""
        invoice = self.get_object()
        remove_line_item(invoice_id=invoice.pk, line_id=line_id, user=request.user)
        return self.output(self._reload(invoice.pk))

    # Workflow

    @extend_schema(request=None, responses={200: InvoiceSerializer})
    @action(detail=True, methods=['post'])
    def emit(self, request, pk=None):
        """POST /api/invoices/{id}/emit/ - BROUILLON -> EMISE"""
        invoice = self.get_object()
        emit_invoice(invoice_id=invoice.pk, user=request.user)
        return self.output(self._reload(invoice.pk))

    @extend_schema(responses={200: InvoicePaymentSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def payments(self, request, pk=None):
        """GET /api/invoices/{id}/payments/"""
        invoice = self.get_object()
        serializer = InvoicePaymentSerializer(invoice.payments.all(), many=True)
        return Response(serializer.data)

    @extend_schema(request=PaymentInputSerializer, responses={201: InvoiceSerializer})
    @payments.mapping.post
    def record_payment(self, request, pk=None):
        """
        Record a payment.

        POST /api/invoices/{id}/payments/
        Body: {"amount_xof": "150000.00", "reference": "VIR-2024-118"}
        """
        invoice = self.get_object()
        serializer = PaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record_invoice_payment(invoice_id=invoice.pk, user=request.user, **serializer.validated_data)
        return self.output(self._reload(invoice.pk), status.HTTP_201_CREATED)

    @extend_schema(request=MarkPaidInputSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=['post'])
    def mark_paid(self, request, pk=None):
        """POST /api/invoices/{id}/mark_paid/ - settles the outstanding balance"""
        invoice = self.get_object()
        serializer = MarkPaidInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        mark_invoice_paid(invoice_id=invoice.pk, user=request.user, **serializer.validated_data)
        return self.output(self._reload(invoice.pk))

    @extend_schema(request=CancelInputSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """POST /api/invoices/{id}/cancel/ - reason required"""
        invoice = self.get_object()
        serializer = CancelInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cancel_invoice(invoice_id=invoice.pk, user=request.user, reason=serializer.validated_data['reason'])
        return self.output(self._reload(invoice.pk))

    @extend_schema(request=None, responses={200: InvoiceSerializer})
    @action(detail=True, methods=['post'])
    def mark_overdue(self, request, pk=None):
        """POST /api/invoices/{id}/mark_overdue/"""
        invoice = self.get_object()
        mark_invoice_overdue(invoice_id=invoice.pk, user=request.user)
        return self.output(self._reload(invoice.pk))

    @extend_schema(request=None, responses={200: OverdueUpdateResultSerializer})
    @action(detail=False, methods=['post'])
    def update_overdue(self, request):
        """POST /api/invoices/update_overdue/ - persist EN_RETARD in bulk"""
        updated = update_overdue_invoices(user=request.user)
        return Response(OverdueUpdateResultSerializer({'updated': updated}).data)

    # Reporting

    @extend_schema(parameters=[StatisticsFilterSerializer], responses={200: InvoiceStatisticsSerializer})
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """GET /api/invoices/stats/?date_from=&date_to="""
        filter_serializer = StatisticsFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        stats = get_invoice_statistics(**filter_serializer.validated_data)
        return Response(InvoiceStatisticsSerializer(stats).data)

    @extend_schema(parameters=[MonthlyEvolutionFilterSerializer], responses={200: MonthlyInvoiceSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='stats/monthly')
    def monthly_stats(self, request):
        """GET /api/invoices/stats/monthly/?months=12"""
        filter_serializer = MonthlyEvolutionFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        evolution = get_monthly_invoice_evolution(**filter_serializer.validated_data)
        return Response(MonthlyInvoiceSerializer(evolution, many=True).data)

    @extend_schema(parameters=[BreakdownFilterSerializer], responses={200: CompanyBreakdownSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='stats/companies')
    def company_stats(self, request):
        """GET /api/invoices/stats/companies/?date_from=&date_to=&limit=6"""
        filter_serializer = BreakdownFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        breakdown = get_company_breakdown(**filter_serializer.validated_data)
        return Response(CompanyBreakdownSerializer(breakdown, many=True).data)

    @extend_schema(parameters=[BreakdownFilterSerializer], responses={200: OperationBreakdownSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='stats/operations')
    def operation_stats(self, request):
        """GET /api/invoices/stats/operations/?date_from=&date_to=&limit=6"""
        filter_serializer = BreakdownFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        breakdown = get_operation_breakdown(**filter_serializer.validated_data)
        return Response(OperationBreakdownSerializer(breakdown, many=True).data)

    @extend_schema(responses={200: InvoiceListSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def overdue(self, request):
        """GET /api/invoices/overdue/ - stored EN_RETARD or past due"""
        queryset = self.get_queryset().filter(
            effective_status_filter(InvoiceStatus.EN_RETARD, timezone.localdate()),
            active=True,
        ).order_by('due_date')
        page = self.paginate_queryset(queryset)
        serializer = InvoiceListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={200: InvoiceSerializer})
    @action(detail=False, methods=['get'], url_path=r'number/(?P<number>[^/]+)')
    def by_number(self, request, number=None):
        """GET /api/invoices/number/{number}/"""
        invoice = get_invoice_by_number(number=number)
        return self.output(self._reload(invoice.pk))
