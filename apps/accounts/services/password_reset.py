"""Password reset by e-mailed token."""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.accounts.emails import send_password_reset_email
from apps.core.exceptions import ValidationFailureError

User = get_user_model()
logger = logging.getLogger(__name__)


def generate_token() -> str:
    """Generate a URL-safe random token."""
    return secrets.token_urlsafe(32)


@transaction.atomic
def request_password_reset(*, email: str) -> Optional[str]:
    """
    Issue a reset token and e-mail it to the user.

    Unknown and deactivated addresses are only logged, so callers can answer
    the same way whether or not the account exists.

    Returns:
        The issued token, or None when no e-mail was sent
    """
    try:
        user = User.objects.select_for_update().get(email__iexact=email)
    except User.DoesNotExist:
        logger.info("Password reset requested for unknown address %s", email)
        return None

    if not user.is_active:
        logger.warning("Password reset requested for deactivated account %s", user.email)
        return None

    token = generate_token()
    user.password_reset_token = token
    user.password_reset_token_expires_at = timezone.now() + timedelta(
        hours=settings.SVS_PASSWORD_RESET_TOKEN_HOURS
    )
    user.save(update_fields=['password_reset_token', 'password_reset_token_expires_at', 'updated_at'])

    transaction.on_commit(lambda: send_password_reset_email(user, token))
    logger.info("Password reset token issued for %s", user.email)
    return token


@transaction.atomic
def confirm_password_reset(*, token: str, new_password: str) -> User:
    """
    Set a new password using a reset token.

    The token is single use. A successful reset also clears any failed-login
    lockout.

    Raises:
        ValidationFailureError: If the token is unknown or expired
    """
    try:
        user = User.objects.select_for_update().get(password_reset_token=token, is_active=True)
    except User.DoesNotExist:
        raise _invalid_token()

    expires_at = user.password_reset_token_expires_at
    if expires_at is None or expires_at <= timezone.now():
        logger.info("Expired password reset token used for %s", user.email)
        raise _invalid_token()

    user.set_password(new_password)
    user.password_reset_token = None
    user.password_reset_token_expires_at = None
    user.login_attempts = 0
    user.account_locked_until = None
    user.save(update_fields=[
        'password',
        'password_reset_token',
        'password_reset_token_expires_at',
        'login_attempts',
        'account_locked_until',
        'updated_at',
    ])
    logger.info("Password reset for %s", user.email)
    return user


def _invalid_token():
    return ValidationFailureError(
        "Invalid or expired reset token",
        details={'token': 'Invalid or expired token.'},
    )
