from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import RoleName, User
from apps.accounts.services import request_password_reset, resend_email_verification


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        """Valid credentials return tokens and the profile."""
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        assert response.data['user']['email'] == user.email
        assert response.data['user']['roles'] == [RoleName.OPERATOR]

    def test_login_email_is_case_insensitive(self, api_client, user):
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email.upper(), 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK

    def test_login_wrong_password(self, api_client, user):
        """Wrong password is rejected with a retry suggestion."""
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'WrongPass!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['code'] == 'invalid_credentials'
        assert response.data['suggestion']['action'] == 'retry'

        user.refresh_from_db()
        assert user.login_attempts == 1

    def test_login_unknown_email(self, api_client, db):
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': 'nobody@svs.example', 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['code'] == 'invalid_credentials'

    def test_login_inactive_account(self, api_client, user_inactive):
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user_inactive.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'account_disabled'
        assert response.data['suggestion']['action'] == 'contact_support'

    def test_login_locked_account(self, api_client, user_locked):
        """A locked account is refused even with the right password."""
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user_locked.email, 'password': 'TestPass123!'})

        assert response.status_code == 423
        assert response.data['code'] == 'account_locked'
        assert response.data['suggestion']['action'] == 'unlock_account'

    def test_repeated_failures_lock_the_account(self, api_client, user, settings):
        settings.SVS_MAX_LOGIN_ATTEMPTS = 3
        url = reverse('accounts:login')

        for _ in range(2):
            response = api_client.post(url, {'email': user.email, 'password': 'WrongPass!'})
            assert response.status_code == status.HTTP_401_UNAUTHORIZED

        response = api_client.post(url, {'email': user.email, 'password': 'WrongPass!'})
        assert response.status_code == 423

        user.refresh_from_db()
        assert user.is_locked()

        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})
        assert response.status_code == 423

    def test_success_resets_failed_attempts(self, api_client, user):
        user.login_attempts = 2
        user.save()

        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.login_attempts == 0
        assert user.last_login is not None

    def test_login_missing_fields(self, api_client, db):
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': 'someone@svs.example'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data['details']


# =============================================================================
# Profile Tests
# =============================================================================

@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/me/ and POST /api/auth/password/"""

    def test_me(self, manager_client, manager_user):
        response = manager_client.get(reverse('accounts:current-user'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == manager_user.email
        assert response.data['full_name'] == 'Awa Ndiaye'

    def test_me_requires_authentication(self, api_client):
        response = api_client.get(reverse('accounts:current-user'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_change_password(self, manager_client, manager_user):
        url = reverse('accounts:change-password')
        response = manager_client.post(url, {
            'current_password': 'TestPass123!',
            'new_password': 'Harbour#2026pass',
        })

        assert response.status_code == status.HTTP_204_NO_CONTENT
        manager_user.refresh_from_db()
        assert manager_user.check_password('Harbour#2026pass')

    def test_change_password_wrong_current(self, manager_client):
        url = reverse('accounts:change-password')
        response = manager_client.post(url, {
            'current_password': 'nope',
            'new_password': 'Harbour#2026pass',
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'current_password' in response.data['details']


# =============================================================================
# User Administration Tests
# =============================================================================

@pytest.mark.django_db
class TestUserAdministration:
    """Tests for /api/users/"""

    def test_list_requires_manager(self, operator_client):
        response = operator_client.get(reverse('accounts:user-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_users(self, manager_client, operator_user):
        response = manager_client.get(reverse('accounts:user-list'))

        assert response.status_code == status.HTTP_200_OK
        emails = [u['email'] for u in response.data['results']]
        assert operator_user.email in emails

    def test_filter_by_role(self, manager_client, operator_user, viewer_user):
        response = manager_client.get(reverse('accounts:user-list'), {'role': RoleName.VIEWER})

        emails = [u['email'] for u in response.data['results']]
        assert emails == [viewer_user.email]

    def test_create_user(self, manager_client):
        response = manager_client.post(reverse('accounts:user-list'), {
            'email': 'fatou@svs.example',
            'username': 'fatou',
            'password': 'Harbour#2026pass',
            'roles': [RoleName.OPERATOR, RoleName.VIEWER],
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert sorted(response.data['roles']) == [RoleName.OPERATOR, RoleName.VIEWER]
        assert User.objects.get(email='fatou@svs.example').check_password('Harbour#2026pass')

    def test_create_duplicate_email(self, manager_client, operator_user):
        response = manager_client.post(reverse('accounts:user-list'), {
            'email': operator_user.email,
            'username': 'someone-else',
            'password': 'Harbour#2026pass',
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['details'] == {'field': 'email'}

    def test_replace_roles(self, manager_client, operator_user):
        url = reverse('accounts:user-detail', kwargs={'pk': operator_user.pk})
        response = manager_client.patch(url, {'roles': [RoleName.MANAGER]}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['roles'] == [RoleName.MANAGER]

    def test_deactivate_and_activate(self, manager_client, operator_user):
        url = reverse('accounts:user-deactivate', kwargs={'pk': operator_user.pk})
        response = manager_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_active'] is False

        url = reverse('accounts:user-activate', kwargs={'pk': operator_user.pk})
        response = manager_client.post(url)
        assert response.data['is_active'] is True

    def test_cannot_deactivate_self(self, manager_client, manager_user):
        url = reverse('accounts:user-deactivate', kwargs={'pk': manager_user.pk})
        response = manager_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'business_rule_violation'

    def test_unlock(self, manager_client, user_locked):
        url = reverse('accounts:user-unlock', kwargs={'pk': user_locked.pk})
        response = manager_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_locked'] is False

    def test_delete_requires_admin(self, manager_client, operator_user):
        url = reverse('accounts:user-detail', kwargs={'pk': operator_user.pk})
        response = manager_client.delete(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_deletes_user(self, admin_client, operator_user):
        url = reverse('accounts:user-detail', kwargs={'pk': operator_user.pk})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not User.objects.filter(pk=operator_user.pk).exists()

    def test_roles_listing(self, manager_client, operator_user):
        response = manager_client.get(reverse('accounts:role-list'))

        assert response.status_code == status.HTTP_200_OK


# =============================================================================
# Logout and Token Validation Tests
# =============================================================================

def _bearer_client(refresh):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.mark.django_db
class TestLogout:
    """Tests for POST /api/auth/logout/"""

    def test_logout_blacklists_refresh_token(self, api_client, user):
        refresh = RefreshToken.for_user(user)

        response = _bearer_client(refresh).post(
            reverse('accounts:logout'), {'refresh': str(refresh)}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        refreshed = api_client.post(reverse('token_refresh'), {'refresh': str(refresh)}, format='json')
        assert refreshed.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_twice(self, user):
        refresh = RefreshToken.for_user(user)
        client = _bearer_client(refresh)
        client.post(reverse('accounts:logout'), {'refresh': str(refresh)}, format='json')

        response = client.post(reverse('accounts:logout'), {'refresh': str(refresh)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'refresh' in response.data['details']

    def test_logout_with_invalid_token(self, operator_client):
        response = operator_client.post(reverse('accounts:logout'), {'refresh': 'not-a-token'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'validation_failure'

    def test_cannot_revoke_another_users_token(self, api_client, operator_client, user):
        refresh = RefreshToken.for_user(user)

        response = operator_client.post(reverse('accounts:logout'), {'refresh': str(refresh)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        refreshed = api_client.post(reverse('token_refresh'), {'refresh': str(refresh)}, format='json')
        assert refreshed.status_code == status.HTTP_200_OK

    def test_logout_requires_authentication(self, api_client):
        response = api_client.post(reverse('accounts:logout'), {'refresh': 'x'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestTokenValidation:
    """Tests for POST /api/auth/token/validate/"""

    def test_valid_token(self, api_client, user):
        token = str(RefreshToken.for_user(user).access_token)

        response = api_client.post(reverse('accounts:validate-token'), {'token': token}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['valid'] is True
        assert response.data['token_info']['user_id'] == str(user.pk)
        assert response.data['token_info']['token_type'] == 'access'

    def test_garbage_token(self, api_client, db):
        response = api_client.post(reverse('accounts:validate-token'), {'token': 'abc.def.ghi'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['valid'] is False
        assert 'token_info' not in response.data

    def test_token_of_deactivated_user(self, api_client, user):
        token = str(RefreshToken.for_user(user).access_token)
        User.objects.filter(pk=user.pk).update(is_active=False)

        response = api_client.post(reverse('accounts:validate-token'), {'token': token}, format='json')

        assert response.data['valid'] is False


# =============================================================================
# Password Reset Tests
# =============================================================================

@pytest.mark.django_db
class TestPasswordReset:
    """Tests for /api/auth/password-reset/ and /api/auth/password-reset/confirm/"""

    def test_request_emails_a_reset_link(self, api_client, user, mailoutbox, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(reverse('accounts:password-reset'), {'email': user.email}, format='json')

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.password_reset_token
        assert user.password_reset_token_expires_at > timezone.now()
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [user.email]
        assert user.password_reset_token in mailoutbox[0].body

    def test_unknown_email_gets_the_same_answer(
        self, api_client, user, mailoutbox, django_capture_on_commit_callbacks
    ):
        url = reverse('accounts:password-reset')
        with django_capture_on_commit_callbacks(execute=True):
            known = api_client.post(url, {'email': user.email}, format='json')
            unknown = api_client.post(url, {'email': 'nobody@svs.example'}, format='json')

        assert unknown.status_code == status.HTTP_200_OK
        assert unknown.data == known.data
        assert len(mailoutbox) == 1

    def test_confirm_sets_password_and_clears_lockout(self, api_client, user):
        token = request_password_reset(email=user.email)
        User.objects.filter(pk=user.pk).update(
            login_attempts=3,
            account_locked_until=timezone.now() + timedelta(minutes=10),
        )

        response = api_client.post(reverse('accounts:password-reset-confirm'), {
            'token': token,
            'new_password': 'Harbour#2026pass',
            'new_password_confirm': 'Harbour#2026pass',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.check_password('Harbour#2026pass')
        assert user.password_reset_token is None
        assert user.login_attempts == 0
        assert user.account_locked_until is None

        login = api_client.post(reverse('accounts:login'), {'email': user.email, 'password': 'Harbour#2026pass'})
        assert login.status_code == status.HTTP_200_OK

    def test_token_is_single_use(self, api_client, user):
        token = request_password_reset(email=user.email)
        payload = {
            'token': token,
            'new_password': 'Harbour#2026pass',
            'new_password_confirm': 'Harbour#2026pass',
        }
        api_client.post(reverse('accounts:password-reset-confirm'), payload, format='json')

        response = api_client.post(reverse('accounts:password-reset-confirm'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'token' in response.data['details']

    def test_expired_token(self, api_client, user):
        token = request_password_reset(email=user.email)
        User.objects.filter(pk=user.pk).update(
            password_reset_token_expires_at=timezone.now() - timedelta(minutes=1)
        )

        response = api_client.post(reverse('accounts:password-reset-confirm'), {
            'token': token,
            'new_password': 'Harbour#2026pass',
            'new_password_confirm': 'Harbour#2026pass',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        user.refresh_from_db()
        assert user.check_password('TestPass123!')

    def test_passwords_must_match(self, api_client, user):
        token = request_password_reset(email=user.email)

        response = api_client.post(reverse('accounts:password-reset-confirm'), {
            'token': token,
            'new_password': 'Harbour#2026pass',
            'new_password_confirm': 'Harbour#2026other',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'new_password_confirm' in response.data['details']

    def test_inactive_account_gets_no_token(self, user_inactive):
        assert request_password_reset(email=user_inactive.email) is None

        user_inactive.refresh_from_db()
        assert user_inactive.password_reset_token is None


# =============================================================================
# Email Verification Tests
# =============================================================================

@pytest.mark.django_db
class TestEmailVerification:
    """Tests for /api/auth/verify-email/"""

    def test_new_user_receives_verification_link(
        self, manager_client, mailoutbox, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = manager_client.post(reverse('accounts:user-list'), {
                'email': 'awa@svs.example',
                'username': 'awa',
                'password': 'Harbour#2026pass',
            }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        created = User.objects.get(email='awa@svs.example')
        assert created.email_verified is False
        assert created.email_verification_token
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == ['awa@svs.example']
        assert created.email_verification_token in mailoutbox[0].body

    def test_verify(self, api_client, user):
        token = resend_email_verification(user_id=user.pk)

        response = api_client.post(reverse('accounts:verify-email'), {'token': token}, format='json')

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.email_verified is True
        assert user.email_verification_token is None

    def test_unknown_token(self, api_client, db):
        response = api_client.post(reverse('accounts:verify-email'), {'token': 'nope'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'validation_failure'

    def test_resend(self, operator_client, operator_user, mailoutbox, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            response = operator_client.post(reverse('accounts:resend-verification'))

        assert response.status_code == status.HTTP_200_OK
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [operator_user.email]

    def test_resend_when_already_verified(self, operator_client, operator_user):
        User.objects.filter(pk=operator_user.pk).update(email_verified=True)

        response = operator_client.post(reverse('accounts:resend-verification'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'business_rule_violation'
