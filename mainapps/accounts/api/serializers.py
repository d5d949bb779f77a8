from django.contrib.auth import get_user_model
from djoser.serializers import UserCreateSerializer as BaseUserCreateSerializer
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from mainapps.accounts.models import Profile, Role
from mainapps.accounts.utils import first_name, full_name

User = get_user_model()


class UserCreateSerializer(BaseUserCreateSerializer):
    class Meta(BaseUserCreateSerializer.Meta):
        model = User
        fields = ('id', 'email', 'password')


class MyTokenObtainPairSerializer(TokenObtainPairSerializer):

    def validate(self, attrs):
        data = super().validate(attrs)
        user = self.user
        profile = user.profile

        data.update({
            'id': str(user.id),
            'email': user.email,
            'role': user.role,
            'onboarded': bool(profile and profile.is_onboarded),
            'display_name': user.display_name,
        })
        return data


class ProfileSerializer(serializers.ModelSerializer):
    """Settings form. Blank strings are stored as null."""
    greeting_name = serializers.SerializerMethodField()

    class Meta:
        model = Profile
        fields = [
            'id', 'role', 'first_name', 'last_name', 'full_name', 'greeting_name',
            'email', 'mobile_number', 'id_number', 'tax_reference',
            'address_line1', 'address_line2', 'city', 'province', 'postal_code',
            'onboarding_completed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'role', 'full_name', 'onboarding_completed_at', 'created_at', 'updated_at']
        extra_kwargs = {
            field: {'allow_blank': True, 'allow_null': True, 'required': False}
            for field in [
                'first_name', 'last_name', 'mobile_number', 'id_number', 'tax_reference',
                'address_line1', 'address_line2', 'city', 'province', 'postal_code', 'email'
            ]
        }

    def get_greeting_name(self, obj):
        return first_name(obj)

    def validate(self, attrs):
        return {
            key: (value.strip() or None) if isinstance(value, str) else value
            for key, value in attrs.items()
        }

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.full_name = full_name(instance) or instance.full_name
        instance.save()
        return instance


class OnboardingSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=[Role.DONOR, Role.CHARITY])
    mobile_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    marketing_source = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate_first_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('First name is required.')
        return value

    def validate_last_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Last name is required.')
        return value


class MyUserSerializer(serializers.ModelSerializer):
    role = serializers.CharField(read_only=True)
    display_name = serializers.CharField(read_only=True)
    profile = ProfileSerializer(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'role', 'display_name', 'is_superuser', 'profile']
        read_only_fields = fields


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()
