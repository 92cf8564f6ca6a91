from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.permissions import crud_operations
from apps.core.viewsets import ActivationMixin, ServiceModelViewSet

from .models import Company
from .serializers import CompanyFilterSerializer, CompanyInputSerializer, CompanySerializer
from .services import create_company, hard_delete_company, update_company


class CompanyViewSet(ActivationMixin, ServiceModelViewSet):
    """
    ViewSet for shipping companies.

    list: Active companies by default (?active=false for archived ones)
    destroy: Soft delete
    activate / deactivate: Toggle the active flag
    hard_delete: Permanent removal when nothing references the company
    """

    queryset = Company.objects.all()
    input_serializer_class = CompanyInputSerializer
    output_serializer_class = CompanySerializer
    filter_serializer_class = CompanyFilterSerializer
    operation_permissions = {
        **crud_operations('reference'),
        'activate': 'reference.admin',
        'deactivate': 'reference.admin',
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
                Q(name__icontains=search) |
                Q(legal_name__icontains=search) |
                Q(email__icontains=search) |
                Q(rccm__icontains=search) |
                Q(ninea__icontains=search)
            )
        if params.get('country'):
            queryset = queryset.filter(country__iexact=params['country'])
        if params.get('city'):
            queryset = queryset.filter(city__iexact=params['city'])

        return queryset

    def create_instance(self, data):
        return create_company(user=self.request.user, **data)

    def update_instance(self, instance, data):
        return update_company(company_id=instance.pk, user=self.request.user, **data)

    @extend_schema(request=None, responses={204: None})
    @action(detail=True, methods=['delete'])
    def hard_delete(self, request, pk=None):
        """DELETE /api/companies/{id}/hard_delete/"""
        hard_delete_company(company_id=self.get_object().pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
