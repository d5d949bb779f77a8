from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AdminCharityViewSet, CharityViewSet

router = DefaultRouter()
router.register(r'charities', CharityViewSet, basename='charity')
router.register(r'admin/charities', AdminCharityViewSet, basename='admin-charity')

urlpatterns = [
    path('', include(router.urls)),
]
