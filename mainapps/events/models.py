from django.conf import settings
from django.db import models


class EventName(models.TextChoices):
    SIGNUP_COMPLETED = 'signup_completed', 'Signup Completed'
    LOGIN_COMPLETED = 'login_completed', 'Login Completed'
    ONBOARDING_COMPLETED = 'onboarding_completed', 'Onboarding Completed'
    CHARITIES_LIST_VIEWED = 'charities_list_viewed', 'Charities List Viewed'
    CHARITY_VIEWED = 'charity_viewed', 'Charity Viewed'
    DONATE_STARTED = 'donate_started', 'Donate Started'
    DONATE_SUCCEEDED = 'donate_succeeded', 'Donate Succeeded'
    CHARITY_PROFILE_CREATED = 'charity_profile_created', 'Charity Profile Created'
    CHARITY_DASHBOARD_VIEWED = 'charity_dashboard_viewed', 'Charity Dashboard Viewed'
    CHARITY_APPROVED = 'charity_approved', 'Charity Approved'
    CHARITY_REJECTED = 'charity_rejected', 'Charity Rejected'


class Event(models.Model):
    """Append-only analytics/audit record"""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='events',
        db_constraint=False,
    )
    event_name = models.CharField(max_length=100, db_index=True)
    metadata = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['event_name', '-created_at'], name='event_name_created_idx'),
        ]

    def __str__(self):
        return f"{self.event_name} ({self.user_id or 'anonymous'})"
