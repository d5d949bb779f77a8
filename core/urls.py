from django.contrib import admin
from django.urls import path,include
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi
from django.conf import settings
from django.conf.urls.static import static

from mainapps.accounts.api.views import TokenGenerator

schema_view = get_schema_view(
   openapi.Info(
      title="Charity Marketplace API",
      default_version='v1',
      description="Charity applications, admin review and donor analytics",
      contact=openapi.Contact(email="contact@snippets.local"),
      license=openapi.License(name="BSD License"),
   ),
   public=True,
   permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    # djoser urls
    path('auth-api/', include('djoser.urls')),
    path('jwt/create/', TokenGenerator.as_view(), name='jwt-create'),
    path('', include('djoser.urls.jwt')),

    #  api endpoints docs
    path('swagger<format>/', schema_view.without_ui(cache_timeout=0), name='schema-json'),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),

    path('api/v1/accounts/', include("mainapps.accounts.api.urls")),
    path('charity_api/', include("mainapps.charities.api.urls")),
    path('donation_api/', include("mainapps.donations.api.urls")),
]+static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
