"""
Base viewset for entities whose writes go through a service layer.

Subclasses provide the serializers and the three service hooks::

    class CompanyViewSet(ServiceModelViewSet):
        input_serializer_class = CompanyInputSerializer
        output_serializer_class = CompanySerializer
        operation_permissions = {**crud_operations('reference'), ...}

        def create_instance(self, data):
            return create_company(user=self.request.user, **data)

Validation happens in the input serializer, business rules in the service,
and the response always uses the output serializer.
"""
from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .pagination import StandardPagination
from .permissions import OperationPermission
from .services import get_for_update


class ServiceModelViewSet(viewsets.ModelViewSet):
    input_serializer_class = None
    output_serializer_class = None
    list_serializer_class = None
    filter_serializer_class = None
    permission_classes = [OperationPermission]
    pagination_class = StandardPagination
    operation_permissions = {}

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return self.input_serializer_class
        if self.action == 'list' and self.list_serializer_class is not None:
            return self.list_serializer_class
        return self.output_serializer_class

    def get_filter_params(self):
        """Validated query parameters (empty dict when no filter serializer)."""
        if self.filter_serializer_class is None:
            return {}
        filter_serializer = self.filter_serializer_class(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        return filter_serializer.validated_data

    def output(self, instance, status_code=status.HTTP_200_OK):
        serializer = self.output_serializer_class(instance, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    def create(self, request, *args, **kwargs):
        serializer = self.input_serializer_class(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        instance = self.create_instance(serializer.validated_data)
        return self.output(instance, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.input_serializer_class(
            instance,
            data=request.data,
            partial=kwargs.get('partial', False),
            context=self.get_serializer_context(),
        )
        serializer.is_valid(raise_exception=True)
        instance = self.update_instance(instance, serializer.validated_data)
        return self.output(instance)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.delete_instance(instance)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # Service hooks

    def create_instance(self, data):
        raise NotImplementedError

    def update_instance(self, instance, data):
        raise NotImplementedError

    def delete_instance(self, instance):
        """Soft delete by default."""
        with transaction.atomic():
            locked = get_for_update(type(instance), instance.pk)
            locked.soft_delete(self.request.user)


class ActivationMixin:
    """
    ``activate`` / ``deactivate`` actions toggling the ``active`` flag.

    Declare ``'activate'`` and ``'deactivate'`` in ``operation_permissions``.
    """

    @extend_schema(request=None)
    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        return self._toggle(True)

    @extend_schema(request=None)
    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        return self._toggle(False)

    def _toggle(self, active):
        instance = self.get_object()
        with transaction.atomic():
            locked = get_for_update(type(instance), instance.pk)
            if active:
                locked.restore(self.request.user)
            else:
                locked.soft_delete(self.request.user)
        return self.output(locked)
