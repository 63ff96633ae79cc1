"""
URL configuration for the Family Finance API.

Every domain app mounts its own namespaced urlconf under /api/.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView

from config.views import health_check

urlpatterns = [
    # Health check (for Render)
    path('api/health/', health_check, name='health-check'),

    # Admin
    path('admin/', admin.site.urls),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),

    # Authentication
    path('api/auth/', include('apps.accounts.urls')),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # API endpoints
    path('api/', include('apps.ledger.urls')),
    path('api/analytics/', include('apps.analytics.urls')),
    path('api/budgeting/', include('apps.budgeting.urls')),
    path('api/banking/', include('apps.banking.urls')),
    path('api/assistant/', include('apps.assistant.urls')),
    path('api/data/', include('apps.dataexchange.urls')),
]


# Custom error handlers
handler404 = 'config.views.error_404'
handler500 = 'config.views.error_500'
