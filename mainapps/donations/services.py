import logging

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from mainapps.charities.models import CharityStatus
from mainapps.charities.services import find_charity
from mainapps.common.exceptions import (
    AuthorizationError, ExternalServiceError, NotFoundError, StateError, ValidationError,
)
from mainapps.events.models import EventName
from mainapps.events.services import track_event
from mainapps.permit import policies

from . import analytics
from .analytics import DonationRecord
from .currency import parse_amount_to_cents
from .models import Donation, DonationStatus

logger = logging.getLogger(__name__)


def to_record(donation, donor_name=None):
    charity = donation.charity
    return DonationRecord(
        donation_id=str(donation.pk),
        charity_id=str(donation.charity_id),
        charity_name=charity.public_name,
        amount_cents=donation.amount_cents,
        currency=donation.currency,
        donated_at=donation.donated_at,
        message=donation.message,
        charity_photo_url=charity.photo_url,
        status=donation.status,
        donor_name=donor_name,
    )


def donor_records(user):
    """Every donation ``user`` made, newest first, joined with its charity."""
    donations = (
        Donation.objects
        .filter(donor=user)
        .select_related('charity')
        .order_by('-donated_at')
    )
    return [to_record(donation) for donation in donations]


def charity_records(charity):
    """Donations received by ``charity``, newest first, with donor names."""
    donations = (
        Donation.objects
        .filter(charity=charity)
        .select_related('charity', 'donor__profile')
        .order_by('-donated_at')
    )
    return [to_record(donation, donation.donor.display_name) for donation in donations]


def parse_year(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({'year': 'Year must be a number.'})


def build_dashboard(records, reference_date=None, charity_id=None, year=None):
    """
    Donor dashboard payload.

    Totals, top charities, monthly series and the tax-year figure cover every
    donation; the ``donations`` list is narrowed by ``charity_id`` and ``year``.
    """
    reference_date = reference_date or timezone.now()
    top_n = getattr(settings, 'DASHBOARD_TOP_CHARITIES', 5)
    months_back = getattr(settings, 'DASHBOARD_MONTHS_BACK', 6)

    tax_start, tax_end = analytics.tax_year_window(reference_date)
    filtered = analytics.filter_donations(records, charity_id=charity_id, year=year)

    return {
        'total_amount': analytics.total_amount(records),
        'donation_count': len(records),
        'top_charities': analytics.top_charities(records, top_n),
        'monthly_totals': analytics.monthly_totals(records, reference_date, months_back),
        'tax_year': {
            'label': analytics.tax_year_label(reference_date),
            'start': tax_start.isoformat(),
            'end': tax_end.isoformat(),
            'total_amount': analytics.tax_year_total(records, reference_date),
        },
        'filters': analytics.filter_options(records),
        'applied_filters': {'charity': charity_id, 'year': year},
        'donations': [record.to_dict() for record in filtered],
    }


class DonationService:
    """Recording donations against approved charities."""

    @classmethod
    def _approved_charity(cls, charity_id):
        charity = find_charity(charity_id)
        if charity is None:
            raise NotFoundError('Charity not found')
        if charity.status != CharityStatus.APPROVED:
            raise StateError('This charity is not accepting donations.')
        return charity

    @classmethod
    def start_donation(cls, donor, charity_id):
        """Note that a donor opened the donation form for a charity."""
        charity = cls._approved_charity(charity_id)
        track_event(donor.pk, EventName.DONATE_STARTED, {'charity_id': str(charity.pk)})
        return charity

    @classmethod
    def create_donation(cls, donor, charity_id, amount, message=None):
        """
        Record a paid donation in the charity's currency.

        ``amount`` is major-unit text as typed by the donor and is validated
        before anything is written.

        Raises:
            ValidationError: the amount is not a positive number
            AuthorizationError: the user may not donate
            NotFoundError: no such charity
            StateError: the charity is not approved
            ExternalServiceError: the database write failed
        """
        amount_cents = parse_amount_to_cents(amount)
        if not policies.can_donate(donor):
            raise AuthorizationError('Only donors can make donations.')
        charity = cls._approved_charity(charity_id)

        message = (message or '').strip() or None
        try:
            donation = Donation.objects.create(
                donor=donor,
                charity=charity,
                amount_cents=amount_cents,
                currency=charity.currency,
                status=DonationStatus.PAID,
                message=message,
            )
        except DatabaseError as e:
            logger.error(f"Could not record donation from {donor.pk} to {charity.pk}: {e}")
            raise ExternalServiceError(str(e))

        logger.info(f"Donation {donation.pk} of {donation.formatted_amount} to {charity.pk}")
        track_event(donor.pk, EventName.DONATE_SUCCEEDED, {
            'charity_id': str(charity.pk),
            'donation_id': str(donation.pk),
            'amount_cents': amount_cents,
            'currency': donation.currency,
        })
        return donation
