from rest_framework import serializers

from apps.companies.models import Company
from apps.companies.serializers import CompanyMinimalSerializer

from .models import Ship, ShipClassification, ShipFlag, ShipType


# =============================================================================
# Input Serializers
# =============================================================================

class ShipFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for ship filtering.

    Query Parameters:
        search (str): Matches name, IMO, MMSI or call sign
        active (bool): Filter by active flag (default: active only)
        company (int): Filter by owning company
        flag (str): Filter by flag state
        ship_type (str): Filter by ship type
        classification (str): Filter by classification society
    """

    search = serializers.CharField(max_length=100, required=False)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)
    company = serializers.IntegerField(required=False, min_value=1)
    flag = serializers.ChoiceField(choices=ShipFlag.choices, required=False)
    ship_type = serializers.ChoiceField(choices=ShipType.choices, required=False)
    classification = serializers.ChoiceField(choices=ShipClassification.choices, required=False)


class ShipInputSerializer(serializers.ModelSerializer):
    """Create / update payload; uniqueness is enforced by the service layer."""

    company = serializers.PrimaryKeyRelatedField(queryset=Company.objects.all())

    class Meta:
        model = Ship
        fields = [
            'name',
            'imo_number',
            'mmsi_number',
            'call_sign',
            'flag',
            'ship_type',
            'classification',
            'passenger_count',
            'home_port',
            'company',
        ]
        extra_kwargs = {
            'name': {'min_length': 2},
            'imo_number': {'validators': [], 'min_length': 7, 'max_length': 10},
            'mmsi_number': {'validators': []},
            'call_sign': {'validators': []},
        }

    def validate_mmsi_number(self, value):
        if not (len(value) == 9 and value.isdigit()):
            raise serializers.ValidationError('MMSI must be exactly 9 digits')
        return value


# =============================================================================
# Output Serializers
# =============================================================================

class ShipMinimalSerializer(serializers.ModelSerializer):
    """Minimal ship info for nested serialization."""

    class Meta:
        model = Ship
        fields = ['id', 'name', 'imo_number']
        read_only_fields = fields


class ShipSerializer(serializers.ModelSerializer):

    company = CompanyMinimalSerializer(read_only=True)
    flag_display = serializers.CharField(source='get_flag_display', read_only=True)
    ship_type_display = serializers.CharField(source='get_ship_type_display', read_only=True)

    class Meta:
        model = Ship
        fields = [
            'id',
            'name',
            'imo_number',
            'mmsi_number',
            'call_sign',
            'flag',
            'flag_display',
            'ship_type',
            'ship_type_display',
            'classification',
            'passenger_count',
            'home_port',
            'company',
            'active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
