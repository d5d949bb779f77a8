from django.urls import path

from .views import LogoutAPI, OnboardingAPIView, ProfileView, TokenGenerator, UserDetailView

urlpatterns = [
    path("logout/", LogoutAPI.as_view(), name="logout"),
    path("token/", TokenGenerator.as_view(), name="token"),
    path('user/', UserDetailView.as_view(), name='user-detail'),
    path('onboarding/', OnboardingAPIView.as_view(), name='onboarding'),
    path('profile/', ProfileView.as_view(), name='profile'),
]
