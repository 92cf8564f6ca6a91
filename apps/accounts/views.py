from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from apps.core.pagination import StandardPagination
from apps.core.permissions import OperationPermission

from .models import Role, User
from .serializers import (
    ChangePasswordSerializer,
    EmailVerificationSerializer,
    LogoutSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    TokenValidationSerializer,
    RoleSerializer,
    UserCreateSerializer,
    UserFilterSerializer,
    UserLoginSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from .services import (
    authenticate_user,
    change_password,
    confirm_password_reset,
    create_user_account,
    delete_user_account,
    inspect_access_token,
    logout_user,
    request_password_reset,
    resend_email_verification,
    verify_user_email,
    set_user_active,
    unlock_user,
    update_user_account,
)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class TokenInfoSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    token_type = serializers.CharField()
    expires_at = serializers.DateTimeField()


class TokenValidationResponseSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    message = serializers.CharField()
    token_info = TokenInfoSerializer(required=False)


@extend_schema(
    request=UserLoginSerializer,
    responses={200: AuthResponseSerializer},
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = UserLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = authenticate_user(**serializer.validated_data)
    refresh = RefreshToken.for_user(user)

    return Response({
        'user': UserSerializer(user).data,
        'tokens': {
            'refresh': str(refresh),
            'access': str(refresh.access_token),
        }
    })


@extend_schema(responses={200: UserSerializer}, tags=['auth'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user(request):
    """Return the authenticated user's profile."""
    return Response(UserSerializer(request.user).data)


@extend_schema(request=ChangePasswordSerializer, responses={204: None}, tags=['auth'])
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_password(request):
    """Change the authenticated user's password."""
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    change_password(user_id=request.user.id, **serializer.validated_data)
    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    request=LogoutSerializer,
    responses={200: MessageResponseSerializer},
    description="Blacklist the refresh token so it can no longer be used.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Logout and blacklist refresh token."""
    serializer = LogoutSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    logout_user(user=request.user, **serializer.validated_data)
    return Response({'message': 'Logout successful'})


@extend_schema(
    request=TokenValidationSerializer,
    responses={200: TokenValidationResponseSerializer},
    description="Check whether an access token is valid and describe it.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def validate_token(request):
    """Validate an access token."""
    serializer = TokenValidationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(inspect_access_token(serializer.validated_data['token']))


@extend_schema(
    request=PasswordResetRequestSerializer,
    responses={200: MessageResponseSerializer},
    description="Request a password reset email. Always returns success for security.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def password_reset_request(request):
    """Request password reset email."""
    serializer = PasswordResetRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    request_password_reset(**serializer.validated_data)
    return Response({
        'message': 'If an account exists with this email, a reset link has been sent'
    })


@extend_schema(
    request=PasswordResetConfirmSerializer,
    responses={200: MessageResponseSerializer},
    description="Confirm password reset with token and set new password.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def password_reset_confirm(request):
    """Confirm password reset with token."""
    serializer = PasswordResetConfirmSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    confirm_password_reset(
        token=serializer.validated_data['token'],
        new_password=serializer.validated_data['new_password'],
    )
    return Response({'message': 'Password reset successful'})


@extend_schema(
    request=EmailVerificationSerializer,
    responses={200: MessageResponseSerializer},
    description="Verify a user's email address with the e-mailed token.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def verify_email(request):
    """Verify email with token."""
    serializer = EmailVerificationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    verify_user_email(**serializer.validated_data)
    return Response({'message': 'Email verified successfully'})


@extend_schema(request=None, responses={200: MessageResponseSerializer}, tags=['auth'])
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def resend_verification_email(request):
    """Send a new verification link to the authenticated user."""
    resend_email_verification(user_id=request.user.pk)
    return Response({'message': 'Verification email sent'})


class UserViewSet(viewsets.ModelViewSet):
    """
    User administration.

    list / retrieve: managers and admins
    create / update: managers and admins
    destroy: admins only (permanent)
    activate / deactivate / unlock: managers and admins
    """

    queryset = User.objects.prefetch_related('roles')
    serializer_class = UserSerializer
    permission_classes = [OperationPermission]
    pagination_class = StandardPagination
    operation_permissions = {
        'list': 'user.read',
        'retrieve': 'user.read',
        'metadata': 'user.read',
        'create': 'user.manage',
        'update': 'user.manage',
        'partial_update': 'user.manage',
        'destroy': 'user.admin',
        'activate': 'user.manage',
        'deactivate': 'user.manage',
        'unlock': 'user.manage',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        filter_serializer = UserFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(email__icontains=search) |
                Q(username__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search)
            )
        if params.get('is_active') is not None:
            queryset = queryset.filter(is_active=params['is_active'])
        if params.get('role'):
            queryset = queryset.filter(roles__name=params['role']).distinct()

        return queryset

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        if self.action in ['update', 'partial_update']:
            return UserUpdateSerializer
        return UserSerializer

    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = create_user_account(**serializer.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        user = self.get_object()
        serializer = UserUpdateSerializer(data=request.data, partial=kwargs.get('partial', False))
        serializer.is_valid(raise_exception=True)
        user = update_user_account(user_id=user.id, **serializer.validated_data)
        return Response(UserSerializer(user).data)

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        delete_user_account(user_id=user.id, acting_user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: UserSerializer})
    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        """POST /api/users/{id}/activate/"""
        user = set_user_active(user_id=self.get_object().id, active=True, acting_user=request.user)
        return Response(UserSerializer(user).data)

    @extend_schema(request=None, responses={200: UserSerializer})
    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        """POST /api/users/{id}/deactivate/"""
        user = set_user_active(user_id=self.get_object().id, active=False, acting_user=request.user)
        return Response(UserSerializer(user).data)

    @extend_schema(request=None, responses={200: UserSerializer})
    @action(detail=True, methods=['post'])
    def unlock(self, request, pk=None):
        """POST /api/users/{id}/unlock/"""
        user = unlock_user(user_id=self.get_object().id)
        return Response(UserSerializer(user).data)


class RoleViewSet(viewsets.ReadOnlyModelViewSet):
    """Available roles (read-only)."""

    queryset = Role.objects.all()
    serializer_class = RoleSerializer
    permission_classes = [OperationPermission]
    operation_permissions = {
        'list': 'user.read',
        'retrieve': 'user.read',
        'metadata': 'user.read',
    }
