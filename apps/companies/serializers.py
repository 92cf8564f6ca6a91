from rest_framework import serializers

from .models import Company


# =============================================================================
# Input Serializers
# =============================================================================

class CompanyFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for company filtering.

    Query Parameters:
        search (str): Matches name, legal name, email, RCCM or NINEA
        active (bool): Filter by active flag (default: active only)
        country (str): Exact country (case-insensitive)
        city (str): Exact city (case-insensitive)
    """

    search = serializers.CharField(max_length=100, required=False)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)
    country = serializers.CharField(max_length=100, required=False)
    city = serializers.CharField(max_length=100, required=False)


class CompanyInputSerializer(serializers.ModelSerializer):
    """Create / update payload; uniqueness is enforced by the service layer."""

    class Meta:
        model = Company
        fields = [
            'name',
            'legal_name',
            'address',
            'city',
            'country',
            'phone',
            'email',
            'contact_name',
            'contact_phone',
            'contact_email',
            'rccm',
            'ninea',
            'website',
        ]
        extra_kwargs = {
            'name': {'min_length': 2},
            'email': {'validators': []},
            'rccm': {'validators': []},
            'ninea': {'validators': []},
        }


# =============================================================================
# Output Serializers
# =============================================================================

class CompanyMinimalSerializer(serializers.ModelSerializer):
    """Minimal company info for nested serialization."""

    class Meta:
        model = Company
        fields = ['id', 'name', 'email']
        read_only_fields = fields


class CompanySerializer(serializers.ModelSerializer):

    ship_count = serializers.SerializerMethodField()

    class Meta:
        model = Company
        fields = [
            'id',
            'name',
            'legal_name',
            'address',
            'city',
            'country',
            'phone',
            'email',
            'contact_name',
            'contact_phone',
            'contact_email',
            'rccm',
            'ninea',
            'website',
            'active',
            'ship_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_ship_count(self, obj):
        return obj.ships.filter(active=True).count()
