from rest_framework import serializers

from mainapps.donations.currency import Currency

from ..badges import status_badge
from ..models import Charity


class CharitySerializer(serializers.ModelSerializer):
    """Public view of an approved charity"""
    status_badge = serializers.SerializerMethodField()

    class Meta:
        model = Charity
        fields = [
            'id', 'status', 'status_badge', 'public_name', 'description', 'website',
            'contact_email', 'contact_phone', 'currency', 'photo_url',
            'created_at', 'approved_at'
        ]
        read_only_fields = fields

    def get_status_badge(self, obj):
        return status_badge(obj.status)


class CharityDetailSerializer(CharitySerializer):
    """What the owning charity user sees of their own application"""

    class Meta(CharitySerializer.Meta):
        fields = CharitySerializer.Meta.fields + [
            'legal_name', 'registration_number', 'rejection_reason',
            'reviewed_at', 'updated_at'
        ]
        read_only_fields = fields


class CharityAdminSerializer(CharitySerializer):
    owner_name = serializers.CharField(read_only=True, allow_null=True)
    reviewer_name = serializers.CharField(read_only=True, allow_null=True)

    class Meta(CharitySerializer.Meta):
        fields = CharitySerializer.Meta.fields + [
            'legal_name', 'registration_number', 'rejection_reason', 'admin_notes',
            'reviewed_by', 'reviewed_at', 'updated_at', 'owner_name', 'reviewer_name'
        ]
        read_only_fields = fields


class CharityApplicationSerializer(serializers.Serializer):
    """
    Input for submitting or editing an application. Required-ness of the
    application fields is enforced by CharityLifecycleService.
    """
    public_name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    legal_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    registration_number = serializers.CharField(required=False, allow_blank=True, max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    website = serializers.URLField(required=False, allow_blank=True, allow_null=True)
    contact_email = serializers.EmailField(required=False, allow_blank=True)
    contact_phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=30)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    photo = serializers.FileField(required=False, write_only=True)


class CharityPhotoSerializer(serializers.Serializer):
    photo = serializers.FileField()


class ApproveCharitySerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RejectCharitySerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
