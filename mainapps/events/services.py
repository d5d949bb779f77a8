import logging

from django.db import transaction

from .models import Event

logger = logging.getLogger(__name__)


def track_event(user_id, event_name, metadata=None):
    """
    Record an analytics/audit event.

    Fire-and-forget: any failure is logged and swallowed so that tracking
    never blocks the action that triggered it.

    Args:
        user_id: Acting user's id, or None for anonymous visitors
        event_name: One of EventName (free text is accepted)
        metadata: Optional JSON-serialisable dict

    Returns:
        The created Event, or None if recording failed
    """
    try:
        # Savepoint keeps a failed insert from breaking the caller's transaction
        with transaction.atomic():
            return Event.objects.create(
                user_id=user_id,
                event_name=str(event_name),
                metadata=metadata or None,
            )
    except Exception:
        logger.exception(f"Event tracking error for {event_name}")
        return None
