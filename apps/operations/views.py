from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.permissions import crud_operations
from apps.core.viewsets import ServiceModelViewSet

from .models import Operation
from .serializers import OperationFilterSerializer, OperationInputSerializer, OperationSerializer
from .services import (
    create_operation,
    hard_delete_operation,
    toggle_operation_active,
    update_operation,
)


class OperationViewSet(ServiceModelViewSet):
    """
    ViewSet for the billable operation catalog.

    list: Active operations by default, searchable, filterable by XOF price
    create: ``code`` generated as OPE-NNN when omitted
    destroy: Soft delete
    toggle_active: Flip the active flag
    hard_delete: Permanent removal when never billed
    """

    queryset = Operation.objects.all()
    input_serializer_class = OperationInputSerializer
    output_serializer_class = OperationSerializer
    filter_serializer_class = OperationFilterSerializer
    operation_permissions = {
        **crud_operations('reference'),
        'toggle_active': 'reference.admin',
        'hard_delete': 'reference.admin',
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
                Q(code__icontains=search) |
                Q(name__icontains=search) |
                Q(description__icontains=search)
            )
        if params.get('min_price_xof') is not None:
            queryset = queryset.filter(price_xof__gte=params['min_price_xof'])
        if params.get('max_price_xof') is not None:
            queryset = queryset.filter(price_xof__lte=params['max_price_xof'])

        return queryset

    def create_instance(self, data):
        return create_operation(user=self.request.user, **data)

    def update_instance(self, instance, data):
        return update_operation(operation_id=instance.pk, user=self.request.user, **data)

    @extend_schema(request=None, responses={200: OperationSerializer})
    @action(detail=True, methods=['post'])
    def toggle_active(self, request, pk=None):
        """POST /api/operations/{id}/toggle_active/"""
        operation = toggle_operation_active(operation_id=self.get_object().pk, user=request.user)
        return self.output(operation)

    @extend_schema(request=None, responses={204: None})
    @action(detail=True, methods=['delete'])
    def hard_delete(self, request, pk=None):
        """DELETE /api/operations/{id}/hard_delete/"""
        hard_delete_operation(operation_id=self.get_object().pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
