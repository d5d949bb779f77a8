import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, F, OuterRef, Subquery
from django.utils import timezone

from mainapps.accounts.models import Role
from mainapps.common.exceptions import (
    AuthorizationError, ConflictError, ExternalServiceError, NotFoundError,
    StateError, ValidationError,
)
from mainapps.events.models import EventName
from mainapps.events.services import track_event
from mainapps.permit import policies

from .models import Charity, CharityStatus, CharityUser, CharityUserRole
from .storage import upload_charity_photo, validate_image_file

logger = logging.getLogger(__name__)


def find_charity(charity_id, queryset=None):
    queryset = Charity.objects.all() if queryset is None else queryset
    try:
        return queryset.filter(pk=charity_id).first()
    except (ValueError, DjangoValidationError):
        return None


class CharityLifecycleService:
    """
    Moves charity applications through their review lifecycle:
    pending_review -> approved | rejected.

    Callers pass the acting user explicitly; nothing is read from the request.
    """

    REQUIRED_FIELDS = ('public_name', 'legal_name', 'registration_number', 'description', 'contact_email')
    OPTIONAL_FIELDS = ('website', 'contact_phone', 'currency')

    @staticmethod
    def _clean(value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @classmethod
    def _application_fields(cls, fields, names):
        return {name: cls._clean(fields.get(name)) for name in names if name in fields}

    @classmethod
    def _require(cls, values, names):
        missing = {name: 'This field is required.' for name in names if not values.get(name)}
        if missing:
            raise ValidationError(missing)

    @classmethod
    def submit_application(cls, fields, owner, photo=None):
        """
        Create a charity in pending_review owned by ``owner``.

        The charity row and its owner link are written in one transaction.
        The photo is stored afterwards; if storing it fails the charity is
        kept without a photo and ``charity.photo_error`` carries the reason.

        Raises:
            ValidationError: a required field is blank or the photo is not an acceptable image
            AuthorizationError: ``owner`` does not hold the charity role
            ConflictError: ``owner`` already owns a charity
            ExternalServiceError: the database write failed
        """
        policies.require_role(owner, Role.CHARITY)
        values = cls._application_fields(fields, cls.REQUIRED_FIELDS + cls.OPTIONAL_FIELDS)
        cls._require(values, cls.REQUIRED_FIELDS)
        if not values.get('currency'):
            values['currency'] = getattr(settings, 'DEFAULT_CHARITY_CURRENCY', 'USD')

        if photo is not None:
            photo_problem = validate_image_file(photo)
            if photo_problem:
                raise ValidationError({'photo': photo_problem})

        if CharityUser.objects.filter(user=owner, role=CharityUserRole.OWNER).exists():
            raise ConflictError('You already own a charity.')

        try:
            with transaction.atomic():
                charity = Charity.objects.create(status=CharityStatus.PENDING_REVIEW, **values)
                CharityUser.objects.create(charity=charity, user=owner, role=CharityUserRole.OWNER)
        except IntegrityError:
            raise ConflictError('You already own a charity.')
        except DatabaseError as e:
            logger.error(f"Could not create charity for {owner.pk}: {e}")
            raise ExternalServiceError(str(e))

        charity.photo_error = None
        if photo is not None:
            try:
                with transaction.atomic():
                    charity.photo_url = upload_charity_photo(charity.pk, photo)
                    charity.save(update_fields=['photo_url', 'updated_at'])
            except Exception:
                logger.exception(f"Charity {charity.pk} created without photo")
                charity.photo_url = None
                charity.photo_error = 'Charity created but the photo could not be uploaded.'

        logger.info(f"Charity application {charity.pk} submitted by {owner.pk}")
        track_event(owner.pk, EventName.CHARITY_PROFILE_CREATED, {'charity_id': str(charity.pk)})
        return charity

    @classmethod
    def _owned_for_edit(cls, charity_id, editor):
        charity = find_charity(charity_id)
        if charity is None:
            raise NotFoundError('Charity not found')
        if not policies.owns_charity(editor, charity):
            raise AuthorizationError()
        if not policies.can_edit_application(editor, charity):
            raise StateError('This application has already been reviewed and can no longer be edited.')
        return charity

    @classmethod
    def update_application(cls, charity_id, editor, fields):
        """Owner edits of application fields while the charity awaits review."""
        charity = cls._owned_for_edit(charity_id, editor)
        editable = [name for name in policies.OWNER_EDITABLE_FIELDS if name != 'photo_url']
        values = cls._application_fields(fields, editable)
        cls._require(values, [name for name in cls.REQUIRED_FIELDS if name in values])
        if 'currency' in values and not values['currency']:
            values.pop('currency')

        for attr, value in values.items():
            setattr(charity, attr, value)
        charity.save(update_fields=list(values) + ['updated_at'])
        return charity

    @classmethod
    def replace_photo(cls, charity_id, editor, photo):
        charity = cls._owned_for_edit(charity_id, editor)
        charity.photo_url = upload_charity_photo(charity.pk, photo)
        charity.save(update_fields=['photo_url', 'updated_at'])
        return charity

    @classmethod
    def _locked_for_review(cls, charity_id, reviewer):
        if not policies.is_admin(reviewer):
            raise AuthorizationError()
        charity = find_charity(charity_id, Charity.objects.select_for_update())
        if charity is None:
            raise NotFoundError('Charity not found')
        if charity.status != CharityStatus.PENDING_REVIEW:
            raise StateError(f"Only charities pending review can be reviewed (current status: {charity.status}).")
        return charity

    @classmethod
    def approve(cls, charity_id, reviewer, notes=None):
        with transaction.atomic():
            charity = cls._locked_for_review(charity_id, reviewer)
            now = timezone.now()
            charity.status = CharityStatus.APPROVED
            charity.approved_at = now
            charity.reviewed_by = reviewer
            charity.reviewed_at = now
            charity.rejection_reason = None
            charity.admin_notes = notes or None
            charity.save(update_fields=list(policies.ADMIN_REVIEW_FIELDS) + ['updated_at'])

        logger.info(f"Charity {charity.pk} approved by {reviewer.pk}")
        track_event(reviewer.pk, EventName.CHARITY_APPROVED, {'charity_id': str(charity.pk)})
        return charity

    @classmethod
    def reject(cls, charity_id, reviewer, reason, notes=None):
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError({'reason': 'Rejection reason is required'})

        with transaction.atomic():
            charity = cls._locked_for_review(charity_id, reviewer)
            charity.status = CharityStatus.REJECTED
            charity.rejection_reason = reason
            charity.reviewed_by = reviewer
            charity.reviewed_at = timezone.now()
            charity.admin_notes = notes or None
            charity.save(update_fields=list(policies.ADMIN_REVIEW_FIELDS) + ['updated_at'])

        logger.info(f"Charity {charity.pk} rejected by {reviewer.pk}")
        track_event(reviewer.pk, EventName.CHARITY_REJECTED, {'charity_id': str(charity.pk)})
        return charity

    @classmethod
    def get_public_listing(cls, filters=None):
        """Approved charities only, most recent first."""
        filters = filters or {}
        queryset = Charity.objects.filter(status=CharityStatus.APPROVED)

        search = (filters.get('search') or '').strip()
        if search:
            queryset = queryset.filter(public_name__icontains=search)
        currency = filters.get('currency')
        if currency:
            queryset = queryset.filter(currency=currency)

        return queryset.order_by('-created_at')

    @classmethod
    def get_admin_listing(cls, status_filter=None):
        """Every charity with its owner's and reviewer's display names."""
        owner_name = CharityUser.objects.filter(
            charity=OuterRef('pk'),
            role=CharityUserRole.OWNER
        ).values('user__profile__full_name')[:1]

        queryset = Charity.objects.select_related('reviewed_by').annotate(
            owner_name=Subquery(owner_name),
            reviewer_name=F('reviewed_by__profile__full_name'),
        )
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=status_filter)
        return queryset.order_by('-created_at')

    @classmethod
    def get_admin_detail(cls, charity_id):
        charity = find_charity(charity_id, cls.get_admin_listing())
        if charity is None:
            raise NotFoundError('Charity not found')
        return charity

    @classmethod
    def status_counts(cls):
        counts = {status: 0 for status in CharityStatus.values}
        for row in Charity.objects.values('status').annotate(total=Count('id')):
            counts[row['status']] = row['total']
        counts['all'] = sum(counts.values())
        return counts

    @classmethod
    def owned_charity(cls, user):
        """The charity ``user`` owns, or None. Takes the first owner link found."""
        link = CharityUser.objects.filter(
            user=user,
            role=CharityUserRole.OWNER
        ).select_related('charity').order_by('created_at').first()
        return link.charity if link else None
