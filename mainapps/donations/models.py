import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from mainapps.charities.models import Charity

from .currency import Currency, format_amount


class DonationStatus(models.TextChoices):
    CREATED = 'created', _('Created')
    PAYMENT_PENDING = 'payment_pending', _('Payment Pending')
    PAID = 'paid', _('Paid')
    FAILED = 'failed', _('Failed')
    REFUNDED = 'refunded', _('Refunded')


class Donation(models.Model):
    """One donor's contribution to a charity, in minor currency units"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='donations'
    )
    charity = models.ForeignKey(
        Charity,
        on_delete=models.PROTECT,
        related_name='donations'
    )
    amount_cents = models.PositiveBigIntegerField(help_text="Amount in minor currency units")
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.USD)
    status = models.CharField(
        max_length=20,
        choices=DonationStatus.choices,
        default=DonationStatus.CREATED
    )
    message = models.TextField(blank=True, null=True)
    donated_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-donated_at']
        indexes = [
            models.Index(fields=['donor', '-donated_at'], name='donation_donor_date_idx'),
            models.Index(fields=['charity', '-donated_at'], name='donation_charity_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(amount_cents__gt=0), name='donation_amount_positive'),
        ]

    @property
    def formatted_amount(self):
        return format_amount(self.amount_cents, self.currency)

    def __str__(self):
        return f"Donation {self.id} - {self.formatted_amount} to {self.charity_id} - {self.status}"


class TaxCertificateStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    AVAILABLE = 'available', _('Available')


class TaxCertificate(models.Model):
    """Yearly per-charity total issued to a donor"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tax_certificates'
    )
    charity = models.ForeignKey(
        Charity,
        on_delete=models.CASCADE,
        related_name='tax_certificates'
    )
    tax_year = models.CharField(max_length=9, help_text="e.g. 2024/2025")
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.USD)
    total_amount_cents = models.PositiveBigIntegerField(default=0)
    certificate_url = models.CharField(max_length=500, blank=True, null=True)
    status = models.CharField(
        max_length=10,
        choices=TaxCertificateStatus.choices,
        default=TaxCertificateStatus.PENDING
    )
    issued_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-tax_year', '-created_at']
        unique_together = ['donor', 'charity', 'tax_year']

    @property
    def formatted_amount(self):
        return format_amount(self.total_amount_cents, self.currency)

    def __str__(self):
        return f"{self.tax_year} certificate - {self.charity_id} ({self.status})"
