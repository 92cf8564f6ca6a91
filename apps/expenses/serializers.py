from decimal import Decimal

from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer

from .models import (
    Currency,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
    ExpenseSupplier,
    PaymentMethod,
)


# =============================================================================
# Input Serializers
# =============================================================================

class ExpenseFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for expense filtering.

    Query Parameters:
        search (str): Matches number, title or description
        status (str): Filter by expense status
        category (int): Filter by category
        supplier (int): Filter by supplier
        payment_method (int): Filter by payment method
        currency (str): Filter by currency
        date_from (date): Expenses on or after this date
        date_to (date): Expenses on or before this date
        min_amount (decimal): Lower bound on XOF amount
        max_amount (decimal): Upper bound on XOF amount
        active (bool): Filter by active flag (default: active only)
    """

    search = serializers.CharField(max_length=100, required=False)
    status = serializers.ChoiceField(choices=ExpenseStatus.choices, required=False)
    category = serializers.IntegerField(required=False, min_value=1)
    supplier = serializers.IntegerField(required=False, min_value=1)
    payment_method = serializers.IntegerField(required=False, min_value=1)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    min_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    max_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
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


class ExpenseInputSerializer(serializers.ModelSerializer):
    """
    Create / update payload.

    ``amount_xof`` may be omitted for an EUR expense carrying an exchange
    rate; the service derives it.
    """

    number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    category = serializers.PrimaryKeyRelatedField(queryset=ExpenseCategory.objects.all())
    supplier = serializers.PrimaryKeyRelatedField(
        queryset=ExpenseSupplier.objects.all(),
        required=False,
        allow_null=True
    )
    payment_method = serializers.PrimaryKeyRelatedField(queryset=PaymentMethod.objects.all())
    amount_xof = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False,
        allow_null=True
    )
    amount_eur = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False,
        allow_null=True
    )
    exchange_rate = serializers.DecimalField(
        max_digits=12,
        decimal_places=4,
        min_value=Decimal('0.0001'),
        required=False,
        allow_null=True
    )

    class Meta:
        model = Expense
        fields = [
            'number',
            'title',
            'description',
            'category',
            'supplier',
            'payment_method',
            'expense_date',
            'amount_xof',
            'amount_eur',
            'exchange_rate',
            'currency',
        ]
        extra_kwargs = {
            'title': {'min_length': 3},
        }


class StatusChangeInputSerializer(serializers.Serializer):
    """Body of POST /api/expenses/{id}/status/."""

    status = serializers.ChoiceField(choices=ExpenseStatus.choices)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class CommentInputSerializer(serializers.Serializer):
    """Optional comment for named transitions (required by reject)."""

    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class PaymentMethodInputSerializer(serializers.ModelSerializer):

    class Meta:
        model = PaymentMethod
        fields = ['name', 'code', 'description']
        extra_kwargs = {
            'name': {'validators': []},
            'code': {'validators': []},
        }


class ExpenseCategoryInputSerializer(serializers.ModelSerializer):

    class Meta:
        model = ExpenseCategory
        fields = ['name', 'description']
        extra_kwargs = {
            'name': {'validators': [], 'min_length': 2},
        }


class ExpenseSupplierInputSerializer(serializers.ModelSerializer):

    class Meta:
        model = ExpenseSupplier
        fields = ['name', 'address', 'phone', 'email', 'rccm', 'ninea']


class ReferenceFilterSerializer(serializers.Serializer):
    """
    Query Parameters:
        search (str): Matches name (and code where present)
        active (bool): Filter by active flag (default: active only)
    """

    search = serializers.CharField(max_length=100, required=False)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)


# =============================================================================
# Output Serializers
# =============================================================================

class PaymentMethodSerializer(serializers.ModelSerializer):

    class Meta:
        model = PaymentMethod
        fields = ['id', 'name', 'code', 'description', 'active', 'created_at', 'updated_at']
        read_only_fields = fields


class ExpenseCategorySerializer(serializers.ModelSerializer):

    class Meta:
        model = ExpenseCategory
        fields = ['id', 'code', 'name', 'description', 'active', 'created_at', 'updated_at']
        read_only_fields = fields


class ExpenseSupplierSerializer(serializers.ModelSerializer):

    class Meta:
        model = ExpenseSupplier
        fields = [
            'id', 'name', 'address', 'phone', 'email', 'rccm', 'ninea',
            'active', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ExpenseListSerializer(serializers.ModelSerializer):
    """Compact representation for listings."""

    category_name = serializers.CharField(source='category.name', read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, default=None)

    class Meta:
        model = Expense
        fields = [
            'id',
            'number',
            'title',
            'category_name',
            'supplier_name',
            'expense_date',
            'amount_xof',
            'amount_eur',
            'currency',
            'status',
            'active',
        ]
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):

    category = ExpenseCategorySerializer(read_only=True)
    supplier = ExpenseSupplierSerializer(read_only=True)
    payment_method = PaymentMethodSerializer(read_only=True)
    validated_by = UserMinimalSerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'number',
            'title',
            'description',
            'category',
            'supplier',
            'payment_method',
            'expense_date',
            'amount_xof',
            'amount_eur',
            'exchange_rate',
            'currency',
            'status',
            'status_display',
            'status_comment',
            'validated_at',
            'validated_by',
            'paid_at',
            'active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class StatusAmountSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    amount_xof = serializers.DecimalField(max_digits=18, decimal_places=2)


class CategoryAmountSerializer(serializers.Serializer):
    category_id = serializers.IntegerField()
    category_name = serializers.CharField()
    count = serializers.IntegerField()
    amount_xof = serializers.DecimalField(max_digits=18, decimal_places=2)


class ExpenseStatisticsSerializer(serializers.Serializer):
    total_count = serializers.IntegerField()
    total_amount_xof = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_amount_eur = serializers.DecimalField(max_digits=18, decimal_places=2)
    pending_count = serializers.IntegerField()
    pending_amount_xof = serializers.DecimalField(max_digits=18, decimal_places=2)
    by_status = serializers.DictField(child=StatusAmountSerializer())
    by_category = CategoryAmountSerializer(many=True)


class MonthlyExpenseSerializer(serializers.Serializer):
    month = serializers.CharField()
    count = serializers.IntegerField()
    amount_xof = serializers.DecimalField(max_digits=18, decimal_places=2)
