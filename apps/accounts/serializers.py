from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import Role, RoleName, User


# =============================================================================
# Input Serializers
# =============================================================================

class UserLoginSerializer(serializers.Serializer):
    """Credentials for POST /api/auth/login/."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class UserFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for user listing.

    Query Parameters:
        search (str): Matches email, username, first or last name
        is_active (bool): Filter by account status
        role (str): Filter by role name
    """

    search = serializers.CharField(max_length=100, required=False)
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    role = serializers.ChoiceField(choices=RoleName.choices, required=False)


class UserCreateSerializer(serializers.Serializer):
    """Input for creating a user from the administration endpoints."""

    email = serializers.EmailField()
    username = serializers.CharField(max_length=50)
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    first_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=RoleName.choices),
        required=False,
        default=list
    )


class UserUpdateSerializer(serializers.Serializer):
    """Input for updating a user; every field is optional."""

    email = serializers.EmailField(required=False)
    username = serializers.CharField(max_length=50, required=False)
    first_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=RoleName.choices),
        required=False
    )


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])


class PasswordResetRequestSerializer(serializers.Serializer):
    """Serializer for password reset request."""

    email = serializers.EmailField(required=True)


class PasswordResetConfirmSerializer(serializers.Serializer):
    """Serializer for password reset confirmation."""

    token = serializers.CharField(required=True)
    new_password = serializers.CharField(
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    new_password_confirm = serializers.CharField(
        required=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        if attrs['new_password'] != attrs['new_password_confirm']:
            raise serializers.ValidationError({
                'new_password_confirm': 'Passwords do not match'
            })
        return attrs


class EmailVerificationSerializer(serializers.Serializer):
    token = serializers.CharField(required=True)


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=True)


class TokenValidationSerializer(serializers.Serializer):
    token = serializers.CharField(required=True)


# =============================================================================
# Output Serializers
# =============================================================================

class RoleSerializer(serializers.ModelSerializer):

    class Meta:
        model = Role
        fields = ['id', 'name', 'description']
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """User profile with role names and lockout state."""

    roles = serializers.SlugRelatedField(many=True, read_only=True, slug_field='name')
    full_name = serializers.CharField(source='get_full_name', read_only=True)
    is_locked = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'username',
            'first_name',
            'last_name',
            'full_name',
            'phone',
            'roles',
            'is_active',
            'email_verified',
            'login_attempts',
            'account_locked_until',
            'is_locked',
            'last_login',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_is_locked(self, obj):
        return obj.is_locked()


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name']
        read_only_fields = fields
