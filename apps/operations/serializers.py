from decimal import Decimal

from rest_framework import serializers

from .models import Operation


# =============================================================================
# Input Serializers
# =============================================================================

class OperationFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for operation filtering.

    Query Parameters:
        search (str): Matches code, name or description
        active (bool): Filter by active flag (default: active only)
        min_price_xof (decimal): Lower bound on XOF price
        max_price_xof (decimal): Upper bound on XOF price
    """

    search = serializers.CharField(max_length=100, required=False)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)
    min_price_xof = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    max_price_xof = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)

    def validate(self, attrs):
        """Validate price range."""
        low = attrs.get('min_price_xof')
        high = attrs.get('max_price_xof')
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError({
                'max_price_xof': 'Maximum price must be greater than minimum price'
            })
        return attrs


class OperationInputSerializer(serializers.ModelSerializer):
    """Create / update payload; ``code`` is generated when omitted."""

    code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    price_xof = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.00'))
    price_eur = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.00'),
        required=False,
        allow_null=True
    )

    class Meta:
        model = Operation
        fields = ['code', 'name', 'description', 'price_xof', 'price_eur']
        extra_kwargs = {
            'name': {'min_length': 2},
        }


# =============================================================================
# Output Serializers
# =============================================================================

class OperationMinimalSerializer(serializers.ModelSerializer):
    """Minimal operation info for nested serialization."""

    class Meta:
        model = Operation
        fields = ['id', 'code', 'name']
        read_only_fields = fields


class OperationSerializer(serializers.ModelSerializer):

    class Meta:
        model = Operation
        fields = [
            'id',
            'code',
            'name',
            'description',
            'price_xof',
            'price_eur',
            'active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
