from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import DonationViewSet, TaxCertificateViewSet

router = DefaultRouter()
router.register(r'donations', DonationViewSet, basename='donation')
router.register(r'tax-certificates', TaxCertificateViewSet, basename='tax-certificate')

urlpatterns = [
    path('', include(router.urls)),
]
