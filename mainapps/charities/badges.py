from collections import namedtuple

from .models import CharityStatus

Badge = namedtuple('Badge', ['label', 'background', 'text'])

STATUS_BADGES = {
    CharityStatus.DRAFT.value: Badge('Draft', '#F3F4F6', '#6B7280'),
    CharityStatus.PENDING_REVIEW.value: Badge('Pending Review', '#FEF3C7', '#92400E'),
    CharityStatus.APPROVED.value: Badge('Approved', '#D1FAE5', '#065F46'),
    CharityStatus.REJECTED.value: Badge('Rejected', '#FEE2E2', '#991B1B'),
    CharityStatus.SUSPENDED.value: Badge('Suspended', '#E5E7EB', '#374151'),
}


def status_badge(status):
    """Badge for a status; unknown statuses get a neutral badge showing the raw value."""
    badge = STATUS_BADGES.get(str(status))
    if badge is None:
        badge = Badge(str(status), '#F3F4F6', '#6B7280')
    return badge._asdict()
