"""Account e-mails: address verification and password reset links."""

import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def _link(path, token):
    return f"{settings.SVS_FRONTEND_URL.rstrip('/')}/{path}?token={token}"


def send_verification_email(user, token):
    send_mail(
        subject='SVS - Confirm your e-mail address',
        message=(
            f"Hello {user.get_full_name()},\n\n"
            f"Confirm your e-mail address by opening this link:\n{_link('verify-email', token)}\n"
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
    )
    logger.info("Verification e-mail sent to %s", user.email)


def send_password_reset_email(user, token):
    hours = settings.SVS_PASSWORD_RESET_TOKEN_HOURS
    send_mail(
        subject='SVS - Reset your password',
        message=(
            f"Hello {user.get_full_name()},\n\n"
            f"Choose a new password with this link (valid {hours} hour(s)):\n"
            f"{_link('reset-password', token)}\n\n"
            "If you did not ask for a reset, ignore this message.\n"
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
    )
    logger.info("Password reset e-mail sent to %s", user.email)
