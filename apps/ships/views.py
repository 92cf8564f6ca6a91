from django.db.models import Q

from apps.core.permissions import crud_operations
from apps.core.viewsets import ActivationMixin, ServiceModelViewSet

from .models import Ship
from .serializers import ShipFilterSerializer, ShipInputSerializer, ShipSerializer
from .services import create_ship, update_ship


class ShipViewSet(ActivationMixin, ServiceModelViewSet):
    """
    ViewSet for ships.

    list: Active ships by default, filterable by company, flag, type
    destroy: Soft delete
    activate / deactivate: Toggle the active flag
    """

    queryset = Ship.objects.select_related('company')
    input_serializer_class = ShipInputSerializer
    output_serializer_class = ShipSerializer
    filter_serializer_class = ShipFilterSerializer
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
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(imo_number__icontains=search) |
                Q(mmsi_number__icontains=search) |
                Q(call_sign__icontains=search)
            )
        for field in ('flag', 'ship_type', 'classification'):
            if params.get(field):
                queryset = queryset.filter(**{field: params[field]})
        if params.get('company'):
            queryset = queryset.filter(company_id=params['company'])

        return queryset

    def create_instance(self, data):
        return create_ship(user=self.request.user, **data)

    def update_instance(self, instance, data):
        return update_ship(ship_id=instance.pk, user=self.request.user, **data)
