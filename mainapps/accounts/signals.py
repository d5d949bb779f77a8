from django.dispatch import receiver
from djoser.signals import user_registered

from mainapps.events.models import EventName
from mainapps.events.services import track_event


@receiver(user_registered)
def track_signup(sender, user, request, **kwargs):
    track_event(user.pk, EventName.SIGNUP_COMPLETED)
