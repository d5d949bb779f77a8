from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from mainapps.donations.analytics import total_amount
from mainapps.donations.currency import format_amount
from mainapps.donations.services import charity_records
from mainapps.events.models import EventName
from mainapps.events.services import track_event
from mainapps.permit import policies
from mainapps.permit.permit import CharityAccessPermission, IsAdminRole, IsOnboarded

from ..services import CharityLifecycleService
from .serializers import (
    ApproveCharitySerializer, CharityAdminSerializer, CharityApplicationSerializer,
    CharityDetailSerializer, CharityPhotoSerializer, CharitySerializer,
    RejectCharitySerializer,
)


def _user_id(request):
    return request.user.pk if request.user.is_authenticated else None


class CharityViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.CreateModelMixin,
                     mixins.UpdateModelMixin,
                     viewsets.GenericViewSet):
    """
    Public charity directory plus the owner's application endpoints.
    """
    permission_classes = [CharityAccessPermission]
    parser_classes = (MultiPartParser, FormParser, JSONParser)

    def get_permissions(self):
        if self.action in ('mine', 'photo'):
            return [IsAuthenticated(), IsOnboarded()]
        if self.action in ('list', 'retrieve'):
            return [AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        if self.action == 'list':
            return CharityLifecycleService.get_public_listing(self.request.query_params)
        return policies.visible_charities(self.request.user)

    def get_serializer_class(self):
        if self.action in ('create', 'update', 'partial_update'):
            return CharityApplicationSerializer
        if self.action == 'photo':
            return CharityPhotoSerializer
        if self.action == 'retrieve':
            return CharityDetailSerializer
        return CharitySerializer

    def _detail_data(self, charity):
        serializer_class = CharityDetailSerializer
        if not policies.owns_charity(self.request.user, charity) and not policies.is_admin(self.request.user):
            serializer_class = CharitySerializer
        return serializer_class(charity, context=self.get_serializer_context()).data

    def list(self, request, *args, **kwargs):
        track_event(_user_id(request), EventName.CHARITIES_LIST_VIEWED)
        return super().list(request, *args, **kwargs)

    def retrieve(self, request, *args, **kwargs):
        charity = self.get_object()
        track_event(_user_id(request), EventName.CHARITY_VIEWED, {'charity_id': str(charity.pk)})
        return Response(self._detail_data(charity))

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        photo = fields.pop('photo', None)

        charity = CharityLifecycleService.submit_application(fields, request.user, photo=photo)

        data = CharityDetailSerializer(charity, context=self.get_serializer_context()).data
        if charity.photo_error:
            data['photo_warning'] = charity.photo_error
        return Response(data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        fields.pop('photo', None)

        charity = CharityLifecycleService.update_application(kwargs['pk'], request.user, fields)
        return Response(CharityDetailSerializer(charity, context=self.get_serializer_context()).data)

    @action(detail=True, methods=['post'])
    def photo(self, request, pk=None):
        """Replace the charity's photo"""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        charity = CharityLifecycleService.replace_photo(pk, request.user, serializer.validated_data['photo'])
        return Response(CharityDetailSerializer(charity, context=self.get_serializer_context()).data)

    @action(detail=False, methods=['get'])
    def mine(self, request):
        """Charity dashboard: the owned charity and the donations it received"""
        charity = CharityLifecycleService.owned_charity(request.user)
        if charity is None:
            return Response({'charity': None, 'donations': [], 'total_amount': 0})

        track_event(request.user.pk, EventName.CHARITY_DASHBOARD_VIEWED, {'charity_id': str(charity.pk)})
        records = charity_records(charity)
        total = total_amount(records)
        return Response({
            'charity': CharityDetailSerializer(charity, context=self.get_serializer_context()).data,
            'donations': [record.to_dict() for record in records],
            'donation_count': len(records),
            'total_amount': total,
            'formatted_total': format_amount(total, charity.currency),
        })


class AdminCharityViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Review queue for administrators.
    """
    serializer_class = CharityAdminSerializer
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get_queryset(self):
        return CharityLifecycleService.get_admin_listing(self.request.query_params.get('status'))

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({
            'counts': CharityLifecycleService.status_counts(),
            'results': serializer.data,
        })

    def retrieve(self, request, *args, **kwargs):
        charity = CharityLifecycleService.get_admin_detail(kwargs['pk'])
        return Response(self.get_serializer(charity).data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        serializer = ApproveCharitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CharityLifecycleService.approve(pk, request.user, notes=serializer.validated_data.get('notes'))
        charity = CharityLifecycleService.get_admin_detail(pk)
        return Response(self.get_serializer(charity).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        serializer = RejectCharitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CharityLifecycleService.reject(
            pk,
            request.user,
            serializer.validated_data.get('reason'),
            notes=serializer.validated_data.get('notes'),
        )
        charity = CharityLifecycleService.get_admin_detail(pk)
        return Response(self.get_serializer(charity).data)
