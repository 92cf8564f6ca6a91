"""User authentication: login with failed-attempt lockout, logout and token checks."""

import logging
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from apps.core.exceptions import (
    AccountDisabledError,
    AccountLockedError,
    InvalidCredentialsError,
    ValidationFailureError,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def authenticate_user(*, email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Every failed password check increments ``login_attempts``; reaching
    ``SVS_MAX_LOGIN_ATTEMPTS`` locks the account for
    ``SVS_ACCOUNT_LOCK_MINUTES``. A successful login resets the counter.

    The counter update is committed before the error is raised.

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        AccountLockedError: Account is locked (or just became locked)
        AccountDisabledError: Account is deactivated
    """
    with transaction.atomic():
        user, failure = _check_credentials(email, password)

    if failure is not None:
        raise failure
    logger.info("User %s logged in", user.email)
    return user


def _check_credentials(email, password):
    try:
        user = User.objects.select_for_update().get(email__iexact=email)
    except User.DoesNotExist:
        return None, InvalidCredentialsError()

    now = timezone.now()
    if user.is_locked(now):
        return user, AccountLockedError(
            f"Account locked until {user.account_locked_until.isoformat()}",
            locked_until=user.account_locked_until,
        )

    if not user.is_active:
        return user, AccountDisabledError()

    if not user.check_password(password):
        return user, _register_failed_attempt(user, now)

    user.login_attempts = 0
    user.account_locked_until = None
    user.last_login = now
    user.save(update_fields=['login_attempts', 'account_locked_until', 'last_login'])
    return user, None


def _register_failed_attempt(user, now):
    user.login_attempts += 1

    if user.login_attempts >= settings.SVS_MAX_LOGIN_ATTEMPTS:
        user.account_locked_until = now + timedelta(minutes=settings.SVS_ACCOUNT_LOCK_MINUTES)
        user.login_attempts = 0
        user.save(update_fields=['login_attempts', 'account_locked_until'])
        logger.warning("Account %s locked until %s", user.email, user.account_locked_until)
        return AccountLockedError(
            f"Too many failed attempts. Account locked until {user.account_locked_until.isoformat()}",
            locked_until=user.account_locked_until,
        )

    user.save(update_fields=['login_attempts'])
    logger.info("Failed login for %s (%d attempt(s))", user.email, user.login_attempts)
    return InvalidCredentialsError()


def logout_user(*, user, refresh: str) -> None:
    """
    Blacklist the user's refresh token so it can no longer be exchanged.

    Raises:
        ValidationFailureError: If the token is invalid, expired, already
            blacklisted or issued to another user
    """
    try:
        token = RefreshToken(refresh)
    except TokenError as exc:
        raise ValidationFailureError(
            "Invalid refresh token",
            details={'refresh': str(exc)},
        )

    if str(token.get(api_settings.USER_ID_CLAIM)) != str(user.pk):
        raise ValidationFailureError(
            "Refresh token was issued to another user",
            details={'refresh': 'Token does not belong to the current user.'},
        )

    token.blacklist()
    logger.info("User %s logged out", user.email)


def inspect_access_token(token: str) -> dict:
    """
    Report whether an access token is usable and, if so, what it carries.

    An expired or tampered token, or one whose user is gone or deactivated,
    is reported as invalid rather than raised.
    """
    try:
        access = AccessToken(token)
    except TokenError as exc:
        return {'valid': False, 'message': str(exc)}

    user_id = access.get(api_settings.USER_ID_CLAIM)
    if not User.objects.filter(pk=user_id, is_active=True).exists():
        return {'valid': False, 'message': 'User not found or inactive'}

    return {
        'valid': True,
        'message': 'Token is valid',
        'token_info': {
            'user_id': str(user_id),
            'token_type': access.get('token_type'),
            'expires_at': datetime.fromtimestamp(access['exp'], tz=dt_timezone.utc),
        },
    }
