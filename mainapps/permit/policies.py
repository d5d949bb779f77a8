"""
Authorization contracts for the marketplace.

Every rule the data layer relies on is spelled out here:

* anyone may read charities whose status is ``approved``;
* a charity owner may read their own charity in any status, and may change
  only ``OWNER_EDITABLE_FIELDS`` while it is still in draft or pending review;
* only admins may read every charity and change ``ADMIN_REVIEW_FIELDS``
  (through approve/reject);
* a donor may read only their own donations and tax certificates; a charity
  owner may read the donations made to their charity;
* only donors may create donations.
"""
from django.db.models import Q

from mainapps.accounts.models import Role
from mainapps.charities.models import Charity, CharityStatus, CharityUserRole
from mainapps.common.exceptions import AuthorizationError

OWNER_EDITABLE_FIELDS = (
    'public_name', 'legal_name', 'registration_number', 'description',
    'website', 'contact_email', 'contact_phone', 'currency', 'photo_url',
)

ADMIN_REVIEW_FIELDS = (
    'status', 'rejection_reason', 'admin_notes', 'reviewed_by', 'reviewed_at', 'approved_at',
)

OWNER_EDITABLE_STATUSES = (CharityStatus.DRAFT, CharityStatus.PENDING_REVIEW)


def role_of(user):
    if user is None or not user.is_authenticated:
        return None
    profile = getattr(user, 'profile', None)
    return profile.role if profile else None


def is_admin(user):
    if user is None or not user.is_authenticated:
        return False
    return user.is_superuser or role_of(user) == Role.ADMIN


def is_donor(user):
    return role_of(user) == Role.DONOR


def is_charity_user(user):
    return role_of(user) == Role.CHARITY


def is_onboarded(user):
    if user is None or not user.is_authenticated:
        return False
    profile = getattr(user, 'profile', None)
    return bool(profile and profile.onboarding_completed_at)


def owns_charity(user, charity):
    if user is None or not user.is_authenticated:
        return False
    return charity.members.filter(user=user, role=CharityUserRole.OWNER).exists()


def require_role(user, *roles):
    """Raise AuthorizationError unless the user holds one of ``roles`` (admins always pass)."""
    if is_admin(user) or role_of(user) in roles:
        return
    raise AuthorizationError()


def visible_charities(user, queryset=None):
    queryset = Charity.objects.all() if queryset is None else queryset
    if is_admin(user):
        return queryset
    condition = Q(status=CharityStatus.APPROVED)
    if user is not None and user.is_authenticated:
        condition |= Q(members__user=user, members__role=CharityUserRole.OWNER)
    return queryset.filter(condition).distinct()


def can_edit_application(user, charity):
    return owns_charity(user, charity) and charity.status in OWNER_EDITABLE_STATUSES


def visible_donations(user, queryset=None):
    from mainapps.donations.models import Donation

    queryset = Donation.objects.all() if queryset is None else queryset
    if is_admin(user):
        return queryset
    if user is None or not user.is_authenticated:
        return queryset.none()
    return queryset.filter(
        Q(donor=user) |
        Q(charity__members__user=user, charity__members__role=CharityUserRole.OWNER)
    ).distinct()


def can_donate(user):
    return is_donor(user) and is_onboarded(user)
