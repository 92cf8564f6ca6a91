from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.utils import timezone
import uuid


class RoleName(models.TextChoices):
    ADMIN = 'ADMIN', 'Administrateur'
    MANAGER = 'MANAGER', 'Gestionnaire'
    OPERATOR = 'OPERATOR', 'Opérateur'
    VIEWER = 'VIEWER', 'Lecteur'
    USER = 'USER', 'Utilisateur'


class Role(models.Model):
    """Named role granting a set of operations (see apps.core.policy)."""

    name = models.CharField(max_length=20, choices=RoleName.choices, unique=True)
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = 'roles'
        ordering = ['name']

    def __str__(self):
        return self.name


class UserManager(BaseUserManager):
    """User manager for email-based authentication."""

    def create_user(self, email, password=None, roles=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')

        email = self.normalize_email(email)
        extra_fields.setdefault('username', email.split('@')[0])
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)

        if roles:
            user.roles.set([
                Role.objects.get_or_create(name=name)[0] for name in roles
            ])
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('email_verified', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, roles=[RoleName.ADMIN], **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """Back-office user authenticated by email, with roles and lockout tracking."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    username = models.CharField(unique=True, max_length=50)
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    roles = models.ManyToManyField(Role, related_name='users', blank=True)

    # Authentication & lockout
    email_verified = models.BooleanField(default=False)
    email_verification_token = models.CharField(max_length=64, blank=True, null=True, unique=True)
    password_reset_token = models.CharField(max_length=64, blank=True, null=True, unique=True)
    password_reset_token_expires_at = models.DateTimeField(null=True, blank=True)
    login_attempts = models.PositiveIntegerField(default=0)
    account_locked_until = models.DateTimeField(null=True, blank=True)

    # Permissions
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email']),
            models.Index(fields=['username']),
            models.Index(fields=['created_at']),
        ]
        ordering = ['email']

    def __str__(self):
        return self.email

    def get_full_name(self):
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.username

    def role_names(self):
        """Names of the roles held by the user."""
        return set(self.roles.values_list('name', flat=True))

    def has_role(self, name):
        return name in self.role_names()

    def is_locked(self, now=None):
        now = now or timezone.now()
        return self.account_locked_until is not None and self.account_locked_until > now
