import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from mainapps.donations.currency import Currency


class CharityStatus(models.TextChoices):
    DRAFT = 'draft', _('Draft')
    PENDING_REVIEW = 'pending_review', _('Pending Review')
    APPROVED = 'approved', _('Approved')
    REJECTED = 'rejected', _('Rejected')
    SUSPENDED = 'suspended', _('Suspended')


class CharityUserRole(models.TextChoices):
    OWNER = 'owner', _('Owner')
    ADMIN = 'admin', _('Admin')
    VIEWER = 'viewer', _('Viewer')


class Charity(models.Model):
    """A charity's application and public profile"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    status = models.CharField(
        max_length=20,
        choices=CharityStatus.choices,
        default=CharityStatus.PENDING_REVIEW,
        db_index=True
    )

    # Application details
    public_name = models.CharField(max_length=200)
    legal_name = models.CharField(max_length=255, blank=True, null=True)
    registration_number = models.CharField(max_length=100, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    website = models.URLField(blank=True, null=True)
    contact_email = models.EmailField(blank=True, null=True)
    contact_phone = models.CharField(max_length=30, blank=True, null=True)
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.USD)
    photo_url = models.CharField(max_length=500, blank=True, null=True)

    # Review details, written only by admins
    rejection_reason = models.TextField(blank=True, null=True)
    admin_notes = models.TextField(blank=True, null=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_charities'
    )
    reviewed_at = models.DateTimeField(blank=True, null=True)
    approved_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Charity"
        verbose_name_plural = "Charities"
        indexes = [
            models.Index(fields=['status', '-created_at'], name='charity_status_created_idx'),
        ]

    def __str__(self):
        return self.public_name

    def clean(self):
        if (self.status == CharityStatus.APPROVED) != (self.approved_at is not None):
            raise ValidationError({'approved_at': 'approved_at must be set exactly when the charity is approved.'})
        if self.status == CharityStatus.REJECTED and not (self.rejection_reason or '').strip():
            raise ValidationError({'rejection_reason': 'A rejected charity needs a rejection reason.'})

    @property
    def owner(self):
        link = self.members.filter(role=CharityUserRole.OWNER).select_related('user').first()
        return link.user if link else None

    @property
    def is_reviewed(self):
        return self.reviewed_by_id is not None


class CharityUser(models.Model):
    """Links a user to a charity with a role"""
    charity = models.ForeignKey(Charity, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='charity_links'
    )
    role = models.CharField(max_length=10, choices=CharityUserRole.choices, default=CharityUserRole.OWNER)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('charity', 'user')
        constraints = [
            models.UniqueConstraint(
                fields=['charity'],
                condition=Q(role='owner'),
                name='charity_single_owner'
            ),
            models.UniqueConstraint(
                fields=['user'],
                condition=Q(role='owner'),
                name='user_owns_single_charity'
            ),
        ]

    def __str__(self):
        return f"{self.user} - {self.charity} ({self.role})"
