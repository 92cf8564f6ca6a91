"""Services for accounts business logic."""

from .authentication import authenticate_user, inspect_access_token, logout_user
from .email_verification import resend_email_verification, verify_user_email
from .password_reset import confirm_password_reset, request_password_reset
from .user_management import (
    create_user_account,
    update_user_account,
    set_user_active,
    unlock_user,
    change_password,
    delete_user_account,
)

__all__ = [
    # Authentication
    'authenticate_user',
    'logout_user',
    'inspect_access_token',

    # E-mail verification
    'verify_user_email',
    'resend_email_verification',

    # Password reset
    'request_password_reset',
    'confirm_password_reset',

    # User administration
    'create_user_account',
    'update_user_account',
    'set_user_active',
    'unlock_user',
    'change_password',
    'delete_user_account',
]
