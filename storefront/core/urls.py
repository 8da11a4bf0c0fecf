from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    forgot_password, reset_password, user_profile,
    user_list_create, user_detail, user_set_password,
    setting_list_create, setting_detail,
    audit_log_list, audit_log_detail,
    global_search
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/forgot-password/', forgot_password, name='forgot-password'),
    path('auth/reset-password/', reset_password, name='reset-password'),

    # Customer profile
    path('users/profile/', user_profile, name='user-profile'),

    # Admin user endpoints
    path('admin/users/', user_list_create, name='user-list-create'),
    path('admin/users/<int:pk>/', user_detail, name='user-detail'),
    path('admin/users/<int:pk>/password/', user_set_password, name='user-set-password'),

    # Setting endpoints
    path('admin/settings/', setting_list_create, name='setting-list-create'),
    path('admin/settings/<int:pk>/', setting_detail, name='setting-detail'),

    # AuditLog endpoints
    path('admin/audit-logs/', audit_log_list, name='audit-log-list'),
    path('admin/audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    # Global search endpoint
    path('admin/search/', global_search, name='global-search'),
]
