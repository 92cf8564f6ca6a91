"""
Permission class bridging DRF views to ``apps.core.policy``.

Usage:
    class InvoiceViewSet(viewsets.ModelViewSet):
        permission_classes = [OperationPermission]
        operation_permissions = {
            **crud_operations('invoice'),
            'emit': 'invoice.transition',
        }
"""
from rest_framework.permissions import BasePermission

from .exceptions import ConfigurationFailureError
from .policy import user_can


def crud_operations(domain, delete='delete'):
    """Default action -> operation map for a ModelViewSet."""
    return {
        'list': f'{domain}.read',
        'retrieve': f'{domain}.read',
        'metadata': f'{domain}.read',
        'create': f'{domain}.write',
        'update': f'{domain}.write',
        'partial_update': f'{domain}.write',
        'destroy': f'{domain}.{delete}',
    }


class OperationPermission(BasePermission):
    """Allow the request when the user's roles grant the action's operation."""

    message = 'Your role does not allow this operation.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        operation = getattr(view, 'operation_permissions', {}).get(view.action)
        if operation is None:
            raise ConfigurationFailureError(
                f"No operation declared for action '{view.action}' on {type(view).__name__}"
            )
        return user_can(request.user, operation)
