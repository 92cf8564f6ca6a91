from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.permissions import crud_operations
from apps.core.viewsets import ActivationMixin, ServiceModelViewSet

from .models import Expense, ExpenseCategory, ExpenseStatus, ExpenseSupplier, PaymentMethod
from .serializers import (
    BreakdownFilterSerializer,
    CategoryAmountSerializer,
    CommentInputSerializer,
    ExpenseCategoryInputSerializer,
    ExpenseCategorySerializer,
    ExpenseFilterSerializer,
    ExpenseInputSerializer,
    ExpenseListSerializer,
    ExpenseSerializer,
    ExpenseStatisticsSerializer,
    ExpenseSupplierInputSerializer,
    ExpenseSupplierSerializer,
    MonthlyEvolutionFilterSerializer,
    MonthlyExpenseSerializer,
    PaymentMethodInputSerializer,
    PaymentMethodSerializer,
    ReferenceFilterSerializer,
    StatisticsFilterSerializer,
    StatusChangeInputSerializer,
)
from .services import (
    approve_expense,
    cancel_expense,
    change_expense_status,
    create_expense,
    create_expense_category,
    create_expense_supplier,
    create_payment_method,
    delete_expense,
    get_expense_by_number,
    get_expense_category_breakdown,
    get_expense_statistics,
    get_monthly_expense_evolution,
    mark_expense_paid,
    reject_expense,
    submit_expense,
    update_expense,
    update_expense_category,
    update_expense_supplier,
    update_payment_method,
)


class ExpenseViewSet(ServiceModelViewSet):
    """
    ViewSet for expenses.

    list: Active expenses, filterable by status, category, supplier, dates, amounts
    create: New expense in BROUILLON with a generated DEP-YYYYMMDD-NNN number
    update: Only while BROUILLON or EN_ATTENTE
    destroy: Soft delete (not once VALIDEE or PAYEE)
    submit / approve / reject / mark_paid / cancel / status: Workflow transitions
    stats: Totals per status and category; monthly and per category breakdowns
    pending: Expenses waiting for approval
    """

    queryset = Expense.objects.select_related('category', 'supplier', 'payment_method', 'validated_by')
    input_serializer_class = ExpenseInputSerializer
    output_serializer_class = ExpenseSerializer
    list_serializer_class = ExpenseListSerializer
    filter_serializer_class = ExpenseFilterSerializer
    operation_permissions = {
        **crud_operations('expense'),
        'submit': 'expense.submit',
        'approve': 'expense.transition',
        'reject': 'expense.transition',
        'mark_paid': 'expense.transition',
        'cancel': 'expense.transition',
        'change_status': 'expense.transition',
        'stats': 'expense.read',
        'monthly_stats': 'expense.read',
        'category_stats': 'expense.read',
        'pending': 'expense.read',
        'by_number': 'expense.read',
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
                Q(title__icontains=search) |
                Q(description__icontains=search)
            )
        for field in ('status', 'currency'):
            if params.get(field):
                queryset = queryset.filter(**{field: params[field]})
        for field in ('category', 'supplier', 'payment_method'):
            if params.get(field):
                queryset = queryset.filter(**{f'{field}_id': params[field]})

        if params.get('date_from'):
            queryset = queryset.filter(expense_date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(expense_date__lte=params['date_to'])
        if params.get('min_amount') is not None:
            queryset = queryset.filter(amount_xof__gte=params['min_amount'])
        if params.get('max_amount') is not None:
            queryset = queryset.filter(amount_xof__lte=params['max_amount'])

        return queryset

    def create_instance(self, data):
        return create_expense(user=self.request.user, **data)

    def update_instance(self, instance, data):
        return update_expense(expense_id=instance.pk, user=self.request.user, **data)

    def delete_instance(self, instance):
        delete_expense(expense_id=instance.pk, user=self.request.user)

    def _transition(self, service):
        expense = self.get_object()
        serializer = CommentInputSerializer(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        expense = service(
            expense_id=expense.pk,
            user=self.request.user,
            comment=serializer.validated_data.get('comment'),
        )
        return self.output(expense)

    @extend_schema(request=CommentInputSerializer, responses={200: ExpenseSerializer})
    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        """POST /api/expenses/{id}/submit/ - BROUILLON -> EN_ATTENTE"""
        return self._transition(submit_expense)

    @extend_schema(request=CommentInputSerializer, responses={200: ExpenseSerializer})
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """POST /api/expenses/{id}/approve/ - EN_ATTENTE -> VALIDEE"""
        return self._transition(approve_expense)

    @extend_schema(request=CommentInputSerializer, responses={200: ExpenseSerializer})
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        """POST /api/expenses/{id}/reject/ - EN_ATTENTE -> REJETEE (comment required)"""
        return self._transition(reject_expense)

    @extend_schema(request=CommentInputSerializer, responses={200: ExpenseSerializer})
    @action(detail=True, methods=['post'])
    def mark_paid(self, request, pk=None):
        """POST /api/expenses/{id}/mark_paid/ - VALIDEE -> PAYEE"""
        return self._transition(mark_expense_paid)

    @extend_schema(request=CommentInputSerializer, responses={200: ExpenseSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """POST /api/expenses/{id}/cancel/"""
        return self._transition(cancel_expense)

    @extend_schema(request=StatusChangeInputSerializer, responses={200: ExpenseSerializer})
    @action(detail=True, methods=['post'], url_path='status')
    def change_status(self, request, pk=None):
        """
        Generic transition.

        POST /api/expenses/{id}/status/
        Body: {"status": "REJETEE", "comment": "Missing receipt"}
        """
        expense = self.get_object()
        serializer = StatusChangeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        expense = change_expense_status(
            expense_id=expense.pk,
            user=request.user,
            status=serializer.validated_data['status'],
            comment=serializer.validated_data.get('comment'),
        )
        return self.output(expense)

    @extend_schema(parameters=[StatisticsFilterSerializer], responses={200: ExpenseStatisticsSerializer})
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """GET /api/expenses/stats/?date_from=&date_to="""
        filter_serializer = StatisticsFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        stats = get_expense_statistics(**filter_serializer.validated_data)
        return Response(ExpenseStatisticsSerializer(stats).data)

    @extend_schema(parameters=[MonthlyEvolutionFilterSerializer], responses={200: MonthlyExpenseSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='stats/monthly')
    def monthly_stats(self, request):
        """GET /api/expenses/stats/monthly/?months=12"""
        filter_serializer = MonthlyEvolutionFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        evolution = get_monthly_expense_evolution(**filter_serializer.validated_data)
        return Response(MonthlyExpenseSerializer(evolution, many=True).data)

    @extend_schema(parameters=[BreakdownFilterSerializer], responses={200: CategoryAmountSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='stats/categories')
    def category_stats(self, request):
        """GET /api/expenses/stats/categories/?date_from=&date_to=&limit=6"""
        filter_serializer = BreakdownFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        breakdown = get_expense_category_breakdown(**filter_serializer.validated_data)
        return Response(CategoryAmountSerializer(breakdown, many=True).data)

    @extend_schema(responses={200: ExpenseListSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def pending(self, request):
        """GET /api/expenses/pending/ - expenses waiting for approval"""
        queryset = self.get_queryset().filter(active=True, status=ExpenseStatus.EN_ATTENTE)
        page = self.paginate_queryset(queryset)
        serializer = ExpenseListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={200: ExpenseSerializer})
    @action(detail=False, methods=['get'], url_path=r'number/(?P<number>[^/]+)')
    def by_number(self, request, number=None):
        """GET /api/expenses/number/{number}/"""
        return self.output(get_expense_by_number(number=number))


class ReferenceViewSet(ActivationMixin, ServiceModelViewSet):
    """Shared listing rules for expense reference data."""

    filter_serializer_class = ReferenceFilterSerializer
    search_fields = ('name',)
    operation_permissions = {
        **crud_operations('reference'),
        'activate': 'reference.admin',
        'deactivate': 'reference.admin',
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
            condition = Q()
            for field in self.search_fields:
                condition |= Q(**{f'{field}__icontains': search})
            queryset = queryset.filter(condition)
        return queryset


class PaymentMethodViewSet(ReferenceViewSet):
    queryset = PaymentMethod.objects.all()
    input_serializer_class = PaymentMethodInputSerializer
    output_serializer_class = PaymentMethodSerializer
    search_fields = ('name', 'code')

    def create_instance(self, data):
        return create_payment_method(user=self.request.user, **data)

    def update_instance(self, instance, data):
        return update_payment_method(payment_method_id=instance.pk, user=self.request.user, **data)


class ExpenseCategoryViewSet(ReferenceViewSet):
    queryset = ExpenseCategory.objects.all()
    input_serializer_class = ExpenseCategoryInputSerializer
    output_serializer_class = ExpenseCategorySerializer
    search_fields = ('name', 'code')

    def create_instance(self, data):
        return create_expense_category(user=self.request.user, **data)

    def update_instance(self, instance, data):
        return update_expense_category(category_id=instance.pk, user=self.request.user, **data)


class ExpenseSupplierViewSet(ReferenceViewSet):
    queryset = ExpenseSupplier.objects.all()
    input_serializer_class = ExpenseSupplierInputSerializer
    output_serializer_class = ExpenseSupplierSerializer
    search_fields = ('name', 'email', 'rccm', 'ninea')

    def create_instance(self, data):
        return create_expense_supplier(user=self.request.user, **data)

    def update_instance(self, instance, data):
        return update_expense_supplier(supplier_id=instance.pk, user=self.request.user, **data)
