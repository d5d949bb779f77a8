from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from mainapps.common.testing import make_user
from mainapps.events.models import Event, EventName

from .models import Profile, Role
from .utils import first_name, full_name

User = get_user_model()


class NameHelperTests(SimpleTestCase):
    def test_first_name_fallbacks(self):
        self.assertEqual(first_name(Profile(first_name='Ada', full_name='Someone Else')), 'Ada')
        self.assertEqual(first_name(Profile(full_name='Grace Hopper')), 'Grace')
        self.assertEqual(first_name(Profile()), 'there')
        self.assertEqual(first_name(None), 'there')

    def test_full_name_fallbacks(self):
        self.assertEqual(full_name(Profile(first_name='Ada', last_name='Lovelace')), 'Ada Lovelace')
        self.assertEqual(full_name(Profile(first_name='Ada')), 'Ada')
        self.assertEqual(full_name(Profile(full_name='Grace Hopper')), 'Grace Hopper')
        self.assertEqual(full_name(Profile()), '')


class UserModelTests(TestCase):
    def test_email_is_the_username(self):
        user = User.objects.create_user(email='Ada@Example.com', password='s3cret-pass')
        self.assertEqual(user.username, user.email)
        self.assertTrue(user.check_password('s3cret-pass'))
        self.assertIsNone(user.role)
        self.assertEqual(user.display_name, user.email)

    def test_display_name_from_profile(self):
        user = make_user('ada@example.com', first_name='Ada', last_name='Lovelace')
        self.assertEqual(user.display_name, 'Ada Lovelace')
        self.assertEqual(user.role, Role.DONOR)
        self.assertTrue(user.profile.is_onboarded)


class AuthFlowTests(APITestCase):
    def test_registration_tracks_signup(self):
        response = self.client.post('/auth-api/users/', {'email': 'new@example.com', 'password': 'a-long-password'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='new@example.com')
        self.assertTrue(Event.objects.filter(event_name=EventName.SIGNUP_COMPLETED, user=user).exists())

    def test_login_returns_tokens_and_tracks_event(self):
        user = make_user('ada@example.com', first_name='Ada', last_name='Lovelace')

        response = self.client.post(reverse('jwt-create'), {'email': 'ada@example.com', 'password': 's3cret-pass'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['role'], 'donor')
        self.assertTrue(response.data['onboarded'])
        self.assertTrue(Event.objects.filter(event_name=EventName.LOGIN_COMPLETED, user=user).exists())

    def test_bad_credentials(self):
        make_user('ada@example.com')
        response = self.client.post(reverse('jwt-create'), {'email': 'ada@example.com', 'password': 'wrong'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(Event.objects.filter(event_name=EventName.LOGIN_COMPLETED).exists())


class OnboardingTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='new@example.com', password='s3cret-pass')
        self.client.force_authenticate(self.user)
        self.url = reverse('onboarding')

    def test_onboarding_creates_profile(self):
        response = self.client.post(self.url, {'first_name': ' Ada ', 'last_name': 'Lovelace', 'role': 'charity'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.user.refresh_from_db()
        profile = self.user.profile
        self.assertEqual(profile.full_name, 'Ada Lovelace')
        self.assertEqual(profile.role, Role.CHARITY)
        self.assertEqual(profile.email, 'new@example.com')
        self.assertIsNotNone(profile.onboarding_completed_at)
        event = Event.objects.get(event_name=EventName.ONBOARDING_COMPLETED)
        self.assertEqual(event.metadata, {'role': 'charity'})

    def test_onboarding_twice_returns_existing_profile(self):
        self.client.post(self.url, {'first_name': 'Ada', 'last_name': 'Lovelace', 'role': 'donor'}, format='json')
        response = self.client.post(self.url, {'first_name': 'Other', 'last_name': 'Name', 'role': 'charity'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['full_name'], 'Ada Lovelace')
        self.assertEqual(response.data['role'], 'donor')
        self.assertEqual(Profile.objects.count(), 1)

    def test_admin_role_cannot_be_self_assigned(self):
        response = self.client.post(self.url, {'first_name': 'Ada', 'last_name': 'Lovelace', 'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_blank_names_rejected(self):
        response = self.client.post(self.url, {'first_name': '  ', 'last_name': 'Lovelace', 'role': 'donor'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProfileSettingsTests(APITestCase):
    def setUp(self):
        self.user = make_user('ada@example.com', first_name='Ada', last_name='Lovelace')
        self.user.profile.city = 'Cape Town'
        self.user.profile.save()
        self.url = reverse('profile')

    def test_requires_onboarding(self):
        newcomer = make_user('new@example.com', onboarded=False)
        self.client.force_authenticate(newcomer)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

    def test_get_profile(self):
        self.client.force_authenticate(self.user)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['greeting_name'], 'Ada')

    def test_patch_stores_blanks_as_null_and_recomputes_full_name(self):
        self.client.force_authenticate(self.user)
        response = self.client.patch(self.url, {'city': '', 'last_name': 'Byron', 'tax_reference': ' 123 '}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        profile = Profile.objects.get(pk=self.user.profile.pk)
        self.assertIsNone(profile.city)
        self.assertEqual(profile.tax_reference, '123')
        self.assertEqual(profile.full_name, 'Ada Byron')

    def test_role_is_read_only(self):
        self.client.force_authenticate(self.user)
        self.client.patch(self.url, {'role': 'admin'}, format='json')
        self.assertEqual(Profile.objects.get(pk=self.user.profile.pk).role, Role.DONOR)
