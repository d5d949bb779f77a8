"""Fixture builders shared by the app test modules."""
from django.contrib.auth import get_user_model
from django.utils import timezone

from mainapps.accounts.models import Profile, Role
from mainapps.charities.models import Charity, CharityStatus, CharityUser, CharityUserRole

User = get_user_model()


def make_user(email, role=Role.DONOR, onboarded=True, first_name=None, last_name=None,
              password='s3cret-pass', **extra):
    user = User.objects.create_user(email=email, password=password, **extra)
    if role is not None:
        full = ' '.join(part for part in (first_name, last_name) if part) or None
        user.profile = Profile.objects.create(
            role=role,
            first_name=first_name,
            last_name=last_name,
            full_name=full,
            email=email,
            onboarding_completed_at=timezone.now() if onboarded else None,
        )
        user.save(update_fields=['profile'])
    return user


def make_charity(owner=None, status=CharityStatus.APPROVED, public_name='Helping Hands', **fields):
    values = {
        'legal_name': f"{public_name} NPO",
        'registration_number': 'NPO-001',
        'description': 'Feeds families.',
        'contact_email': 'info@example.org',
    }
    values.update(fields)
    if status == CharityStatus.APPROVED:
        values.setdefault('approved_at', timezone.now())
    charity = Charity.objects.create(status=status, public_name=public_name, **values)
    if owner is not None:
        CharityUser.objects.create(charity=charity, user=owner, role=CharityUserRole.OWNER)
    return charity
