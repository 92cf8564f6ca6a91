"""User administration service."""

import logging
from typing import Iterable, Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction

from apps.accounts.models import Role
from apps.core.exceptions import BusinessRuleError, ValidationFailureError
from apps.core.services import apply_changes, ensure_unique, get_for_update

from .email_verification import issue_email_verification_token

User = get_user_model()
logger = logging.getLogger(__name__)


def _resolve_roles(names: Iterable[str]):
    return [Role.objects.get_or_create(name=name)[0] for name in names]


@transaction.atomic
def create_user_account(
    *,
    email: str,
    username: str,
    password: str,
    roles: Optional[Iterable[str]] = None,
    **profile,
) -> User:
    """
    Create a back-office user.

    Unverified users are e-mailed a verification link once the transaction
    commits.

    Raises:
        DuplicateResourceError: If email or username is already taken
    """
    ensure_unique(User, entity='User', field='email', value=email)
    ensure_unique(User, entity='User', field='username', value=username)

    user = User.objects.create_user(
        email=email,
        username=username,
        password=password,
        **profile,
    )
    user.roles.set(_resolve_roles(roles or []))
    if not user.email_verified:
        issue_email_verification_token(user)
    logger.info("Created user %s with roles %s", user.email, sorted(user.role_names()))
    return user


@transaction.atomic
def update_user_account(*, user_id: UUID, roles: Optional[Iterable[str]] = None, **changes) -> User:
    """
    Update profile fields and, when given, replace the user's roles.

    Raises:
        ResourceNotFoundError: If user does not exist
        DuplicateResourceError: If the new email or username is taken
    """
    user = get_for_update(User, user_id, 'User')

    for field in ('email', 'username'):
        if field in changes:
            ensure_unique(User, entity='User', field=field, value=changes[field], exclude_pk=user.pk)

    if changes:
        apply_changes(user, changes)
    if roles is not None:
        user.roles.set(_resolve_roles(roles))

    logger.info("Updated user %s", user.email)
    return user


@transaction.atomic
def set_user_active(*, user_id: UUID, active: bool, acting_user=None) -> User:
    """
    Activate or deactivate a user account.

    Raises:
        BusinessRuleError: If a user tries to deactivate their own account
    """
    user = get_for_update(User, user_id, 'User')

    if not active and acting_user is not None and acting_user.pk == user.pk:
        raise BusinessRuleError("You cannot deactivate your own account")

    user.is_active = active
    user.save(update_fields=['is_active', 'updated_at'])
    logger.info("User %s %s", user.email, 'activated' if active else 'deactivated')
    return user


@transaction.atomic
def unlock_user(*, user_id: UUID) -> User:
    """Clear a lockout and reset the failed-attempt counter."""
    user = get_for_update(User, user_id, 'User')
    user.login_attempts = 0
    user.account_locked_until = None
    user.save(update_fields=['login_attempts', 'account_locked_until', 'updated_at'])
    logger.info("User %s unlocked", user.email)
    return user


@transaction.atomic
def change_password(*, user_id: UUID, current_password: str, new_password: str) -> User:
    """
    Change a user's own password.

    Raises:
        ValidationFailureError: If the current password is wrong
    """
    user = get_for_update(User, user_id, 'User')
    if not user.check_password(current_password):
        raise ValidationFailureError(
            "Current password is incorrect",
            details={'current_password': 'Incorrect password'},
        )
    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    logger.info("User %s changed password", user.email)
    return user


@transaction.atomic
def delete_user_account(*, user_id: UUID, acting_user=None) -> None:
    """
    Permanently delete a user.

    Raises:
        BusinessRuleError: If a user tries to delete their own account
    """
    user = get_for_update(User, user_id, 'User')
    if acting_user is not None and acting_user.pk == user.pk:
        raise BusinessRuleError("You cannot delete your own account")
    email = user.email
    user.delete()
    logger.info("User %s deleted", email)
