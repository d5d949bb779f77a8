import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from mainapps.accounts.models import Profile
from mainapps.accounts.utils import full_name
from mainapps.events.models import EventName
from mainapps.events.services import track_event
from mainapps.permit.permit import IsOnboarded

from .serializers import (
    LogoutSerializer, MyTokenObtainPairSerializer, MyUserSerializer,
    OnboardingSerializer, ProfileSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()


class TokenGenerator(TokenObtainPairView):
    """
    JWT login. Records a login_completed event on success.
    """
    serializer_class = MyTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])

        track_event(serializer.user.pk, EventName.LOGIN_COMPLETED)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class UserDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        """Return details of the logged-in user"""
        serializer = MyUserSerializer(request.user)
        return Response(serializer.data)


class OnboardingAPIView(APIView):
    """
    Create the user's profile with names and role.
    Completing onboarding twice returns the existing profile unchanged.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        user = request.user
        if user.profile and user.profile.is_onboarded:
            return Response(ProfileSerializer(user.profile).data, status=status.HTTP_200_OK)

        serializer = OnboardingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            profile = user.profile or Profile()
            profile.first_name = data['first_name']
            profile.last_name = data['last_name']
            profile.role = data['role']
            profile.email = profile.email or user.email
            profile.mobile_number = data.get('mobile_number') or profile.mobile_number
            profile.marketing_source = data.get('marketing_source') or profile.marketing_source
            profile.full_name = full_name(profile)
            profile.onboarding_completed_at = timezone.now()
            profile.save()

            if user.profile_id != profile.pk:
                user.profile = profile
                user.save(update_fields=['profile'])

        logger.info(f"User {user.pk} onboarded as {profile.role}")
        track_event(user.pk, EventName.ONBOARDING_COMPLETED, {'role': profile.role})
        return Response(ProfileSerializer(profile).data, status=status.HTTP_201_CREATED)


class ProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = ProfileSerializer
    permission_classes = [IsAuthenticated, IsOnboarded]
    http_method_names = ['get', 'patch', 'head', 'options']

    def get_object(self):
        return self.request.user.profile


class LogoutAPI(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            token = RefreshToken(serializer.validated_data['refresh'])
            token.blacklist()
        except TokenError as e:
            logger.debug(f"Logout with unusable refresh token: {e}")
        return Response({"message": "Logged out successfully"}, status=status.HTTP_200_OK)
