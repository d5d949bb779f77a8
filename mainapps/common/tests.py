from django.core.cache import cache
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APIRequestFactory

from .exceptions import (
    AuthorizationError, ConflictError, ExternalServiceError, NotFoundError,
    StateError, SupersededRequestError, ValidationError,
)
from .generation import RequestGeneration


class ExceptionStatusTests(SimpleTestCase):
    def test_status_codes(self):
        self.assertEqual(ValidationError({'amount': 'bad'}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(AuthorizationError().status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(NotFoundError().status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(ConflictError().status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(StateError().status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(SupersededRequestError().status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(ExternalServiceError().status_code, status.HTTP_502_BAD_GATEWAY)


class FakeUser:
    pk = 'user-1'


class RequestGenerationTests(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.factory = APIRequestFactory()

    def request(self, token=None):
        headers = {} if token is None else {'HTTP_X_REQUEST_GENERATION': token}
        request = self.factory.get('/dashboard/', **headers)
        request.user = FakeUser()
        return request

    def test_reads_header(self):
        self.assertEqual(RequestGeneration.from_request(self.request('4'), 'dash').token, 4)
        self.assertIsNone(RequestGeneration.from_request(self.request(), 'dash').token)
        self.assertIsNone(RequestGeneration.from_request(self.request('soon'), 'dash').token)

    def test_newer_generation_supersedes_older(self):
        older = RequestGeneration.from_request(self.request('1'), 'dash')
        newer = RequestGeneration.from_request(self.request('2'), 'dash')
        older.begin()
        newer.begin()

        self.assertFalse(older.is_current())
        self.assertTrue(newer.is_current())
        with self.assertRaises(SupersededRequestError):
            older.ensure_current()
        newer.ensure_current()

    def test_late_older_request_does_not_reset_newest(self):
        RequestGeneration('dash:user-1', 5).begin()
        late = RequestGeneration('dash:user-1', 3)
        late.begin()
        self.assertFalse(late.is_current())
        self.assertTrue(RequestGeneration('dash:user-1', 5).is_current())

    def test_requests_without_token_are_always_current(self):
        RequestGeneration('dash:user-1', 9).begin()
        untracked = RequestGeneration('dash:user-1')
        untracked.begin()
        self.assertTrue(untracked.is_current())

    def test_scopes_are_independent(self):
        RequestGeneration('dash:user-1', 9).begin()
        self.assertTrue(RequestGeneration('other:user-1', 1).is_current())
