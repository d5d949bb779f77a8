from rest_framework import serializers

from ..models import Donation, TaxCertificate


class DonationSerializer(serializers.ModelSerializer):
    charity_name = serializers.CharField(source='charity.public_name', read_only=True)
    charity_photo_url = serializers.CharField(source='charity.photo_url', read_only=True)
    formatted_amount = serializers.CharField(read_only=True)

    class Meta:
        model = Donation
        fields = [
            'id', 'charity', 'charity_name', 'charity_photo_url', 'amount_cents',
            'formatted_amount', 'currency', 'status', 'message', 'donated_at'
        ]
        read_only_fields = fields


class CreateDonationSerializer(serializers.Serializer):
    """Amount is major-unit text ("25.50"); it is parsed to cents by the service"""
    charity = serializers.CharField()
    amount = serializers.CharField(trim_whitespace=True)
    message = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)


class StartDonationSerializer(serializers.Serializer):
    charity = serializers.CharField()


class TaxCertificateSerializer(serializers.ModelSerializer):
    charity_name = serializers.CharField(source='charity.public_name', read_only=True)
    formatted_amount = serializers.CharField(read_only=True)

    class Meta:
        model = TaxCertificate
        fields = [
            'id', 'charity', 'charity_name', 'tax_year', 'currency', 'total_amount_cents',
            'formatted_amount', 'certificate_url', 'status', 'issued_at', 'created_at'
        ]
        read_only_fields = fields
