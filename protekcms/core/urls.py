from django.urls import path
from .views import (
    login, CustomTokenRefreshView, user_me,
    two_factor_setup, two_factor_verify, two_factor_disable, two_factor_validate,
    user_list_create, user_detail,
    account_settings, account_avatar,
    setup_check, setup,
    audit_log_list, audit_log_detail,
    health,
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', login, name='login'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/two-factor/setup/', two_factor_setup, name='two-factor-setup'),
    path('auth/two-factor/verify/', two_factor_verify, name='two-factor-verify'),
    path('auth/two-factor/disable/', two_factor_disable, name='two-factor-disable'),
    path('auth/two-factor/validate/', two_factor_validate, name='two-factor-validate'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # Account settings
    path('settings/', account_settings, name='account-settings'),
    path('settings/avatar/', account_avatar, name='account-avatar'),

    # First-run setup
    path('setup/check/', setup_check, name='setup-check'),
    path('setup/', setup, name='setup'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    path('health/', health, name='health'),
]
