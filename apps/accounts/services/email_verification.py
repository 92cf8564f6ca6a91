"""E-mail address verification."""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from apps.accounts.emails import send_verification_email
from apps.core.exceptions import BusinessRuleError, ValidationFailureError
from apps.core.services import get_for_update

from .password_reset import generate_token

User = get_user_model()
logger = logging.getLogger(__name__)


def issue_email_verification_token(user) -> str:
    """Store a fresh verification token and e-mail it once the transaction commits."""
    token = generate_token()
    user.email_verification_token = token
    user.save(update_fields=['email_verification_token', 'updated_at'])
    transaction.on_commit(lambda: send_verification_email(user, token))
    return token


@transaction.atomic
def verify_user_email(*, token: str) -> User:
    """
    Mark the address owning ``token`` as verified.

    Raises:
        ValidationFailureError: If the token is unknown
    """
    try:
        user = User.objects.select_for_update().get(email_verification_token=token)
    except User.DoesNotExist:
        raise ValidationFailureError(
            "Invalid verification token",
            details={'token': 'Invalid or already used token.'},
        )

    user.email_verified = True
    user.email_verification_token = None
    user.save(update_fields=['email_verified', 'email_verification_token', 'updated_at'])
    logger.info("E-mail verified for %s", user.email)
    return user


@transaction.atomic
def resend_email_verification(*, user_id) -> str:
    """
    Replace the user's verification token and e-mail the new one.

    Raises:
        BusinessRuleError: If the address is already verified
    """
    user = get_for_update(User, user_id, 'User')
    if user.email_verified:
        raise BusinessRuleError(f"E-mail {user.email} is already verified")
    token = issue_email_verification_token(user)
    logger.info("Verification e-mail re-issued for %s", user.email)
    return token
