from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from mainapps.common.testing import make_user

from .models import Event, EventName
from .services import track_event


class TrackEventTests(TestCase):
    def test_records_event(self):
        user = make_user('ada@example.com')
        event = track_event(user.pk, EventName.CHARITY_VIEWED, {'charity_id': 'abc'})

        self.assertIsNotNone(event)
        stored = Event.objects.get(pk=event.pk)
        self.assertEqual(stored.event_name, 'charity_viewed')
        self.assertEqual(stored.metadata, {'charity_id': 'abc'})
        self.assertEqual(stored.user, user)

    def test_anonymous_event_without_metadata(self):
        event = track_event(None, EventName.CHARITIES_LIST_VIEWED, {})
        self.assertIsNone(event.user_id)
        self.assertIsNone(event.metadata)

    def test_failures_are_swallowed(self):
        with mock.patch.object(Event.objects, 'create', side_effect=DatabaseError('down')):
            with self.assertLogs('mainapps.events.services', level='ERROR'):
                result = track_event(None, EventName.SIGNUP_COMPLETED)

        self.assertIsNone(result)
        self.assertFalse(Event.objects.exists())
