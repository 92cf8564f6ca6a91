from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'description']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for back-office users."""

    list_display = [
        'email',
        'username',
        'first_name',
        'last_name',
        'is_active',
        'login_attempts',
        'account_locked_until',
        'last_login',
    ]
    list_filter = ['is_active', 'is_staff', 'roles', 'created_at']
    search_fields = ['email', 'username', 'first_name', 'last_name']
    ordering = ['email']

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'username', 'first_name', 'last_name', 'phone', 'password')
        }),
        ('Roles & Permissions', {
            'fields': ('roles', 'is_active', 'is_staff', 'is_superuser'),
        }),
        ('Lockout', {
            'fields': ('login_attempts', 'account_locked_until'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'username', 'password1', 'password2', 'roles'),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login']
    filter_horizontal = ['roles']

    actions = ['unlock_users']

    @admin.action(description='Unlock selected users')
    def unlock_users(self, request, queryset):
        count = queryset.update(login_attempts=0, account_locked_until=None)
        self.message_user(request, f'Unlocked {count} user(s).')
