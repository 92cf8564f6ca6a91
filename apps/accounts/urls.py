from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'accounts'

router = DefaultRouter()
router.register(r'users', views.UserViewSet, basename='user')
router.register(r'roles', views.RoleViewSet, basename='role')

urlpatterns = [
    # Authentication
    # POST /api/auth/login/     - Obtain JWT tokens
    # GET  /api/auth/me/        - Current user profile
    # POST /api/auth/password/  - Change own password
    # POST /api/auth/logout/    - Blacklist a refresh token
    path('auth/login/', views.login, name='login'),
    path('auth/logout/', views.logout, name='logout'),
    path('auth/me/', views.current_user, name='current-user'),
    path('auth/password/', views.update_password, name='change-password'),
    path('auth/token/validate/', views.validate_token, name='validate-token'),

    # Password reset and e-mail verification
    path('auth/password-reset/', views.password_reset_request, name='password-reset'),
    path('auth/password-reset/confirm/', views.password_reset_confirm, name='password-reset-confirm'),
    path('auth/verify-email/', views.verify_email, name='verify-email'),
    path('auth/verify-email/resend/', views.resend_verification_email, name='resend-verification'),

    # User administration
    # GET/POST          /api/users/
    # GET/PUT/PATCH/DEL /api/users/{id}/
    # POST              /api/users/{id}/activate|deactivate|unlock/
    path('', include(router.urls)),
]
