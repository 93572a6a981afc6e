"""
URL configuration for the kneelab project.

Routes the Django admin, the clinic API and the OpenAPI documentation
(``/swagger/`` and ``/redoc/``).
"""
from django.contrib import admin
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

api_info = openapi.Info(
    title="Knee Diagnostics Clinic API",
    default_version='v1',
    description="Clinic network hierarchy, test-allocation ledger and knee test records.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('clinic.routers')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
