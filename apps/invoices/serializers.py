from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from apps.companies.models import Company
from apps.companies.serializers import CompanyMinimalSerializer
from apps.expenses.models import PaymentMethod
from apps.operations.models import Operation
from apps.operations.serializers import OperationMinimalSerializer
from apps.ships.models import Ship
from apps.ships.serializers import ShipMinimalSerializer

from .models import Invoice, InvoiceLineItem, InvoicePayment, InvoiceStatus
from .workflow import effective_status


# =============================================================================
# Input Serializers
# =============================================================================

class InvoiceFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for invoice filtering.

    Query Parameters:
        search (str): Matches number, notes, company or ship name
        company (int): Filter by company
        ship (int): Filter by ship
        status (str): Filter by effective status (EN_RETARD includes past-due invoices)
        date_from (date): Invoices issued on or after this date
        date_to (date): Invoices issued on or before this date
        min_amount (decimal): Lower bound on XOF total
        max_amount (decimal): Upper bound on XOF total
        active (bool): Filter by active flag (default: active only)
    """

    search = serializers.CharField(max_length=100, required=False)
    company = serializers.IntegerField(required=False, min_value=1)
    ship = serializers.IntegerField(required=False, min_value=1)
    status = serializers.ChoiceField(choices=InvoiceStatus.choices, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    min_amount = serializers.DecimalField(max_digits=19, decimal_places=2, required=False)
    max_amount = serializers.DecimalField(max_digits=19, decimal_places=2, required=False)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        """Validate date and amount ranges."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        low = attrs.get('min_amount')
        high = attrs.get('max_amount')
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError({
                'max_amount': 'Maximum amount must be greater than minimum amount'
            })
        return attrs


class StatisticsFilterSerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class BreakdownFilterSerializer(StatisticsFilterSerializer):
    limit = serializers.IntegerField(required=False, default=6, min_value=1, max_value=50)


class MonthlyEvolutionFilterSerializer(serializers.Serializer):
    months = serializers.IntegerField(required=False, default=12, min_value=1, max_value=36)


class LineItemInputSerializer(serializers.Serializer):
    """
    Line item payload. Unit prices default to the operation's catalog prices.
    """

    operation = serializers.PrimaryKeyRelatedField(queryset=Operation.objects.all())
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    unit_price_xof = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.00'),
        required=False
    )
    unit_price_eur = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.00'),
        required=False,
        allow_null=True
    )
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)


class InvoiceInputSerializer(serializers.Serializer):
    """Create / update payload; line items are only accepted on create."""

    number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    company = serializers.PrimaryKeyRelatedField(queryset=Company.objects.all())
    ship = serializers.PrimaryKeyRelatedField(queryset=Ship.objects.all())
    issue_date = serializers.DateField()
    due_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True)
    line_items = LineItemInputSerializer(many=True, required=False)

    def validate(self, attrs):
        issue_date = attrs.get('issue_date')
        due_date = attrs.get('due_date')
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({
                'due_date': 'Due date cannot be before the invoice date.'
            })
        if self.instance is not None and 'line_items' in attrs:
            raise serializers.ValidationError({
                'line_items': 'Use the lines endpoints to change line items.'
            })
        return attrs


class PaymentInputSerializer(serializers.Serializer):
    amount_xof = serializers.DecimalField(max_digits=19, decimal_places=2, min_value=Decimal('0.01'))
    paid_on = serializers.DateField(required=False)
    payment_method = serializers.PrimaryKeyRelatedField(
        queryset=PaymentMethod.objects.all(),
        required=False,
        allow_null=True
    )
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True)
    note = serializers.CharField(max_length=500, required=False, allow_blank=True)


class MarkPaidInputSerializer(serializers.Serializer):
    payment_method = serializers.PrimaryKeyRelatedField(
        queryset=PaymentMethod.objects.all(),
        required=False,
        allow_null=True
    )
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CancelInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, allow_blank=True)


# =============================================================================
# Output Serializers
# =============================================================================

class InvoiceLineItemSerializer(serializers.ModelSerializer):

    operation = OperationMinimalSerializer(read_only=True)

    class Meta:
        model = InvoiceLineItem
        fields = [
            'id',
            'operation',
            'description',
            'quantity',
            'unit_price_xof',
            'unit_price_eur',
            'amount_xof',
            'amount_eur',
        ]
        read_only_fields = fields


class InvoicePaymentSerializer(serializers.ModelSerializer):

    recorded_by = UserMinimalSerializer(read_only=True)
    payment_method = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = InvoicePayment
        fields = [
            'id',
            'amount_xof',
            'paid_on',
            'payment_method',
            'reference',
            'note',
            'recorded_by',
            'created_at',
        ]
        read_only_fields = fields


class EffectiveStatusMixin(serializers.Serializer):
    """``status`` reports the effective status; ``stored_status`` the persisted one."""

    status = serializers.SerializerMethodField()
    stored_status = serializers.CharField(source='status', read_only=True)

    def get_status(self, obj):
        today = self.context.get('today') or timezone.localdate()
        return effective_status(obj, today)


class InvoiceListSerializer(EffectiveStatusMixin, serializers.ModelSerializer):
    """Compact representation for listings."""

    company_name = serializers.CharField(source='company.name', read_only=True)
    ship_name = serializers.CharField(source='ship.name', read_only=True)
    outstanding_xof = serializers.DecimalField(
        source='get_outstanding_balance', max_digits=19, decimal_places=4, read_only=True
    )

    class Meta:
        model = Invoice
        fields = [
            'id',
            'number',
            'company_name',
            'ship_name',
            'issue_date',
            'due_date',
            'total_xof',
            'total_eur',
            'amount_paid_xof',
            'outstanding_xof',
            'status',
            'stored_status',
            'active',
        ]
        read_only_fields = fields


class InvoiceSerializer(EffectiveStatusMixin, serializers.ModelSerializer):

    company = CompanyMinimalSerializer(read_only=True)
    ship = ShipMinimalSerializer(read_only=True)
    line_items = InvoiceLineItemSerializer(many=True, read_only=True)
    payments = InvoicePaymentSerializer(many=True, read_only=True)
    outstanding_xof = serializers.DecimalField(
        source='get_outstanding_balance', max_digits=19, decimal_places=4, read_only=True
    )
    overpaid_xof = serializers.DecimalField(
        source='get_overpaid_amount', max_digits=19, decimal_places=4, read_only=True
    )

    class Meta:
        model = Invoice
        fields = [
            'id',
            'number',
            'company',
            'ship',
            'issue_date',
            'due_date',
            'total_xof',
            'total_eur',
            'amount_paid_xof',
            'outstanding_xof',
            'overpaid_xof',
            'status',
            'stored_status',
            'notes',
            'paid_at',
            'line_items',
            'payments',
            'active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class StatusAmountSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    amount_xof = serializers.DecimalField(max_digits=19, decimal_places=4)


class CompanyAmountSerializer(serializers.Serializer):
    company_id = serializers.IntegerField()
    company_name = serializers.CharField()
    count = serializers.IntegerField()
    amount_xof = serializers.DecimalField(max_digits=19, decimal_places=4)


class InvoiceStatisticsSerializer(serializers.Serializer):
    total_count = serializers.IntegerField()
    total_invoiced_xof = serializers.DecimalField(max_digits=19, decimal_places=4)
    total_paid_xof = serializers.DecimalField(max_digits=19, decimal_places=4)
    total_outstanding_xof = serializers.DecimalField(max_digits=19, decimal_places=4)
    overdue_count = serializers.IntegerField()
    overdue_amount_xof = serializers.DecimalField(max_digits=19, decimal_places=4)
    by_status = serializers.DictField(child=StatusAmountSerializer())
    top_companies = CompanyAmountSerializer(many=True)


class MonthlyInvoiceSerializer(serializers.Serializer):
    month = serializers.CharField()
    count = serializers.IntegerField()
    amount_xof = serializers.DecimalField(max_digits=19, decimal_places=4)
    paid_xof = serializers.DecimalField(max_digits=19, decimal_places=4)


class CompanyBreakdownSerializer(CompanyAmountSerializer):
    paid_xof = serializers.DecimalField(max_digits=19, decimal_places=4)


class OperationBreakdownSerializer(serializers.Serializer):
    operation_id = serializers.IntegerField()
    operation_code = serializers.CharField()
    operation_name = serializers.CharField()
    line_count = serializers.IntegerField()
    invoice_count = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=19, decimal_places=2)
    amount_xof = serializers.DecimalField(max_digits=19, decimal_places=4)


class OverdueUpdateResultSerializer(serializers.Serializer):
    updated = serializers.IntegerField()
