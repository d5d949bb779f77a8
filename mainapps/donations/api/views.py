import logging

from django.http import HttpResponse
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from mainapps.common.generation import RequestGeneration
from mainapps.permit import policies
from mainapps.permit.permit import IsDonorOrReadOnly, IsOnboarded

from .. import analytics
from ..filters import DonationFilter, TaxCertificateFilter
from ..models import Donation, TaxCertificate
from ..services import DonationService, build_dashboard, donor_records, parse_year
from .serializers import (
    CreateDonationSerializer, DonationSerializer, StartDonationSerializer,
    TaxCertificateSerializer,
)

logger = logging.getLogger(__name__)


class DonationViewSet(mixins.ListModelMixin,
                      mixins.CreateModelMixin,
                      viewsets.GenericViewSet):
    """
    Donations visible to the signed-in user, plus the donor dashboard and
    CSV export.
    """
    permission_classes = [IsAuthenticated, IsOnboarded, IsDonorOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_class = DonationFilter

    def get_queryset(self):
        queryset = Donation.objects.select_related('charity').order_by('-donated_at')
        return policies.visible_donations(self.request.user, queryset)

    def get_serializer_class(self):
        if self.action == 'create':
            return CreateDonationSerializer
        if self.action == 'started':
            return StartDonationSerializer
        return DonationSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        donation = DonationService.create_donation(
            request.user,
            serializer.validated_data['charity'],
            serializer.validated_data['amount'],
            serializer.validated_data.get('message'),
        )
        return Response(DonationSerializer(donation).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def started(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        charity = DonationService.start_donation(request.user, serializer.validated_data['charity'])
        return Response({'charity': str(charity.pk)})

    def _filter_params(self, request):
        charity_id = request.query_params.get('charity') or None
        year = parse_year(request.query_params.get('year'))
        return charity_id, year

    @action(detail=False, methods=['get'])
    def dashboard(self, request):
        """Donor analytics. Honors X-Request-Generation."""
        generation = RequestGeneration.from_request(request, 'donor-dashboard')
        generation.begin()

        charity_id, year = self._filter_params(request)
        payload = build_dashboard(
            donor_records(request.user),
            reference_date=timezone.now(),
            charity_id=charity_id,
            year=year,
        )

        generation.ensure_current()
        return Response(payload)

    @action(detail=False, methods=['get'])
    def export(self, request):
        charity_id, year = self._filter_params(request)
        records = analytics.filter_donations(donor_records(request.user), charity_id=charity_id, year=year)

        response = HttpResponse(analytics.to_csv(records), content_type='text/csv; charset=utf-8')
        filename = analytics.export_filename(timezone.now())
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        logger.info(f"Exported {len(records)} donations for {request.user.pk}")
        return response


class TaxCertificateViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = TaxCertificateSerializer
    permission_classes = [IsAuthenticated, IsOnboarded]
    filter_backends = [DjangoFilterBackend]
    filterset_class = TaxCertificateFilter

    def get_queryset(self):
        return TaxCertificate.objects.filter(donor=self.request.user).select_related('charity')
