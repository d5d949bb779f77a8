import io
import shutil
import tempfile
from unittest import mock

from django.contrib.admin.sites import site as admin_site
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from PIL import Image
from rest_framework import status
from rest_framework.test import APITestCase

from mainapps.accounts.models import Role
from mainapps.common.exceptions import (
    AuthorizationError, ConflictError, ExternalServiceError, NotFoundError,
    StateError, ValidationError,
)
from mainapps.common.testing import make_charity, make_user
from mainapps.donations.models import Donation, DonationStatus
from mainapps.events.models import Event, EventName

from .admin import CharityAdmin
from .badges import STATUS_BADGES, status_badge
from .models import Charity, CharityStatus, CharityUser
from .services import CharityLifecycleService
from .storage import photo_path, upload_charity_photo, validate_image_file

APPLICATION = {
    'public_name': 'Helping Hands',
    'legal_name': 'Helping Hands NPO',
    'registration_number': 'NPO-001',
    'description': '...',
    'contact_email': 'a@b.org',
}


def png_upload(name='logo.png', content_type='image/png'):
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), color='red').save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)


class TemporaryMediaMixin:
    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.media_override = override_settings(MEDIA_ROOT=self.media_root)
        self.media_override.enable()

    def tearDown(self):
        self.media_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)
        super().tearDown()


class StatusBadgeTests(SimpleTestCase):
    def test_every_status_has_a_badge(self):
        for value in CharityStatus.values:
            self.assertIn(value, STATUS_BADGES)

    def test_lookup_accepts_enum_and_plain_string(self):
        self.assertEqual(status_badge(CharityStatus.APPROVED)['label'], 'Approved')
        self.assertEqual(status_badge('pending_review')['label'], 'Pending Review')

    def test_unknown_status_gets_default(self):
        badge = status_badge('archived')
        self.assertEqual(badge['label'], 'archived')
        self.assertEqual(badge['background'], '#F3F4F6')


class PhotoStorageTests(TemporaryMediaMixin, TestCase):
    def test_accepts_png(self):
        self.assertIsNone(validate_image_file(png_upload()))

    def test_rejects_wrong_content_type(self):
        upload = SimpleUploadedFile('doc.pdf', b'%PDF-1.4', content_type='application/pdf')
        self.assertEqual(validate_image_file(upload), 'File must be a JPEG, PNG, or WebP image')

    def test_rejects_bytes_that_are_not_an_image(self):
        upload = SimpleUploadedFile('fake.png', b'not an image', content_type='image/png')
        self.assertEqual(validate_image_file(upload), 'File must be a JPEG, PNG, or WebP image')

    @override_settings(CHARITY_PHOTO_MAX_BYTES=10)
    def test_rejects_large_file(self):
        self.assertEqual(validate_image_file(png_upload()), 'File size must be less than 5MB')

    def test_photo_path(self):
        self.assertEqual(photo_path('abc', png_upload()), 'charity-photos/abc/logo.png')

    def test_upload_replaces_previous_photo(self):
        first = upload_charity_photo('abc', png_upload('first.png'))
        second = upload_charity_photo('abc', png_upload('second.png'))

        self.assertEqual(first, '/media/charity-photos/abc/logo.png')
        self.assertEqual(second, first)

    def test_upload_rejects_invalid_file(self):
        upload = SimpleUploadedFile('fake.png', b'nope', content_type='image/png')
        with self.assertRaises(ValidationError):
            upload_charity_photo('abc', upload)


class SubmitApplicationTests(TemporaryMediaMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.owner = make_user('owner@example.com', role=Role.CHARITY, first_name='Olive', last_name='Owner')

    def test_submission_starts_pending_review(self):
        charity = CharityLifecycleService.submit_application(APPLICATION, self.owner)

        self.assertEqual(charity.status, CharityStatus.PENDING_REVIEW)
        self.assertIsNone(charity.approved_at)
        self.assertIsNone(charity.reviewed_by)
        self.assertEqual(charity.currency, 'USD')
        self.assertEqual(charity.owner, self.owner)
        self.assertTrue(Event.objects.filter(event_name=EventName.CHARITY_PROFILE_CREATED).exists())

    def test_missing_required_field(self):
        fields = dict(APPLICATION, legal_name='   ')
        with self.assertRaises(ValidationError) as ctx:
            CharityLifecycleService.submit_application(fields, self.owner)

        self.assertIn('legal_name', ctx.exception.detail)
        self.assertFalse(Charity.objects.exists())

    def test_owner_cannot_submit_twice(self):
        CharityLifecycleService.submit_application(APPLICATION, self.owner)
        with self.assertRaises(ConflictError):
            CharityLifecycleService.submit_application(dict(APPLICATION, public_name='Other'), self.owner)
        self.assertEqual(Charity.objects.count(), 1)

    def test_submission_with_photo(self):
        charity = CharityLifecycleService.submit_application(APPLICATION, self.owner, photo=png_upload())

        self.assertEqual(charity.photo_url, f"/media/charity-photos/{charity.pk}/logo.png")
        self.assertIsNone(charity.photo_error)

    def test_invalid_photo_rejected_before_any_write(self):
        upload = SimpleUploadedFile('fake.png', b'nope', content_type='image/png')
        with self.assertRaises(ValidationError):
            CharityLifecycleService.submit_application(APPLICATION, self.owner, photo=upload)
        self.assertFalse(Charity.objects.exists())

    def test_photo_upload_failure_keeps_charity(self):
        with mock.patch('mainapps.charities.services.upload_charity_photo',
                        side_effect=ExternalServiceError('storage down')):
            charity = CharityLifecycleService.submit_application(APPLICATION, self.owner, photo=png_upload())

        charity.refresh_from_db()
        self.assertIsNone(charity.photo_url)
        self.assertEqual(charity.status, CharityStatus.PENDING_REVIEW)
        self.assertTrue(CharityUser.objects.filter(charity=charity, user=self.owner).exists())

    def test_unexpected_storage_error_keeps_charity(self):
        with mock.patch.object(FileSystemStorage, 'save', side_effect=SuspiciousFileOperation('bad path')):
            charity = CharityLifecycleService.submit_application(APPLICATION, self.owner, photo=png_upload())

        self.assertIsNone(charity.photo_url)
        self.assertEqual(charity.photo_error, 'Charity created but the photo could not be uploaded.')
        self.assertEqual(Charity.objects.get(pk=charity.pk).status, CharityStatus.PENDING_REVIEW)
        self.assertTrue(CharityUser.objects.filter(charity=charity, user=self.owner).exists())
        self.assertTrue(Event.objects.filter(event_name=EventName.CHARITY_PROFILE_CREATED).exists())

    def test_only_charity_users_submit(self):
        donor = make_user('donor@example.com')
        with self.assertRaises(AuthorizationError):
            CharityLifecycleService.submit_application(APPLICATION, donor)
        self.assertFalse(Charity.objects.exists())


class ReviewTests(TestCase):
    def setUp(self):
        self.admin = make_user('admin@example.com', role=Role.ADMIN, first_name='Ada', last_name='Admin')
        self.owner = make_user('owner@example.com', role=Role.CHARITY, first_name='Olive', last_name='Owner')
        self.charity = make_charity(self.owner, status=CharityStatus.PENDING_REVIEW)

    def test_approve_sets_review_metadata(self):
        charity = CharityLifecycleService.approve(self.charity.pk, self.admin, notes='Docs checked')

        self.assertEqual(charity.status, CharityStatus.APPROVED)
        self.assertIsNotNone(charity.approved_at)
        self.assertEqual(charity.reviewed_by, self.admin)
        self.assertEqual(charity.reviewed_at, charity.approved_at)
        self.assertEqual(charity.admin_notes, 'Docs checked')
        self.assertTrue(Event.objects.filter(event_name=EventName.CHARITY_APPROVED, user=self.admin).exists())

    def test_approve_rejected_charity_fails_unchanged(self):
        rejected = make_charity(status=CharityStatus.REJECTED, public_name='Nope', rejection_reason='Incomplete')

        with self.assertRaises(StateError):
            CharityLifecycleService.approve(rejected.pk, self.admin)

        rejected.refresh_from_db()
        self.assertEqual(rejected.status, CharityStatus.REJECTED)
        self.assertIsNone(rejected.approved_at)
        self.assertIsNone(rejected.reviewed_by)

    def test_reject_requires_reason(self):
        for reason in ['', '   ', None]:
            with self.subTest(reason=reason):
                with self.assertRaises(ValidationError):
                    CharityLifecycleService.reject(self.charity.pk, self.admin, reason)

        self.charity.refresh_from_db()
        self.assertEqual(self.charity.status, CharityStatus.PENDING_REVIEW)

    def test_reject_stores_trimmed_reason(self):
        charity = CharityLifecycleService.reject(self.charity.pk, self.admin, '  Missing documents ')

        self.assertEqual(charity.status, CharityStatus.REJECTED)
        self.assertEqual(charity.rejection_reason, 'Missing documents')
        self.assertIsNone(charity.approved_at)
        self.assertEqual(charity.reviewed_by, self.admin)

    def test_only_admins_review(self):
        with self.assertRaises(AuthorizationError):
            CharityLifecycleService.approve(self.charity.pk, self.owner)

    def test_unknown_charity(self):
        with self.assertRaises(NotFoundError):
            CharityLifecycleService.approve('9b2e1f7c-0000-4000-8000-000000000000', self.admin)
        with self.assertRaises(NotFoundError):
            CharityLifecycleService.reject('not-a-uuid', self.admin, 'reason')

    def test_owner_edits_only_before_review(self):
        updated = CharityLifecycleService.update_application(self.charity.pk, self.owner, {'description': ' New text '})
        self.assertEqual(updated.description, 'New text')

        CharityLifecycleService.approve(self.charity.pk, self.admin)
        with self.assertRaises(StateError):
            CharityLifecycleService.update_application(self.charity.pk, self.owner, {'description': 'Again'})

    def test_non_owner_cannot_edit(self):
        stranger = make_user('stranger@example.com', role=Role.CHARITY)
        with self.assertRaises(AuthorizationError):
            CharityLifecycleService.update_application(self.charity.pk, stranger, {'description': 'Mine now'})

    def test_listings(self):
        approved = make_charity(public_name='Approved One')

        public = list(CharityLifecycleService.get_public_listing())
        self.assertEqual(public, [approved])
        self.assertEqual(list(CharityLifecycleService.get_public_listing({'search': 'one'})), [approved])

        admin_rows = CharityLifecycleService.get_admin_listing('pending_review')
        self.assertEqual([c.pk for c in admin_rows], [self.charity.pk])
        self.assertEqual(admin_rows[0].owner_name, 'Olive Owner')
        self.assertEqual(CharityLifecycleService.get_admin_listing('all').count(), 2)

        counts = CharityLifecycleService.status_counts()
        self.assertEqual(counts['pending_review'], 1)
        self.assertEqual(counts['approved'], 1)
        self.assertEqual(counts['rejected'], 0)
        self.assertEqual(counts['all'], 2)

    def test_reviewer_name_annotation(self):
        CharityLifecycleService.approve(self.charity.pk, self.admin)
        charity = CharityLifecycleService.get_admin_detail(self.charity.pk)
        self.assertEqual(charity.reviewer_name, 'Ada Admin')

    def test_review_survives_event_failure(self):
        with mock.patch.object(Event.objects, 'create', side_effect=DatabaseError('events down')):
            charity = CharityLifecycleService.approve(self.charity.pk, self.admin)

        self.assertEqual(charity.status, CharityStatus.APPROVED)
        self.charity.refresh_from_db()
        self.assertEqual(self.charity.status, CharityStatus.APPROVED)
        self.assertIsNotNone(self.charity.approved_at)
        self.assertFalse(Event.objects.exists())


class CharityDjangoAdminTests(TestCase):
    def setUp(self):
        self.superuser = make_user('root@example.com', role=None, is_staff=True, is_superuser=True)
        self.charity = make_charity(status=CharityStatus.PENDING_REVIEW)
        self.client.force_login(self.superuser)

    def change_form_data(self, **overrides):
        data = {
            'public_name': self.charity.public_name,
            'legal_name': self.charity.legal_name,
            'registration_number': self.charity.registration_number,
            'description': self.charity.description,
            'website': '',
            'contact_email': self.charity.contact_email,
            'contact_phone': '',
            'currency': 'USD',
            'photo_url': '',
            'admin_notes': '',
            'members-TOTAL_FORMS': '0',
            'members-INITIAL_FORMS': '0',
            'members-MIN_NUM_FORMS': '0',
            'members-MAX_NUM_FORMS': '1000',
            '_save': 'Save',
        }
        data.update(overrides)
        return data

    def test_review_fields_are_read_only(self):
        request = RequestFactory().get('/admin/')
        request.user = self.superuser
        form_class = CharityAdmin(Charity, admin_site).get_form(request, self.charity, change=True)
        for field in ['status', 'rejection_reason', 'reviewed_by', 'reviewed_at', 'approved_at']:
            self.assertNotIn(field, form_class.base_fields)
        self.assertIn('admin_notes', form_class.base_fields)

    def test_change_form_ignores_posted_status(self):
        url = reverse('admin:charities_charity_change', args=[self.charity.pk])
        response = self.client.post(url, self.change_form_data(status='approved'))

        self.assertEqual(response.status_code, 302)
        self.charity.refresh_from_db()
        self.assertEqual(self.charity.status, CharityStatus.PENDING_REVIEW)
        self.assertIsNone(self.charity.approved_at)

    def test_approve_action(self):
        url = reverse('admin:charities_charity_changelist')
        response = self.client.post(url, {
            'action': 'approve_selected_charities',
            '_selected_action': [str(self.charity.pk)],
        })

        self.assertEqual(response.status_code, 302)
        self.charity.refresh_from_db()
        self.assertEqual(self.charity.status, CharityStatus.APPROVED)
        self.assertEqual(self.charity.reviewed_by, self.superuser)

    def test_reject_action_uses_admin_notes(self):
        url = reverse('admin:charities_charity_changelist')
        action = {'action': 'reject_selected_charities', '_selected_action': [str(self.charity.pk)]}

        self.client.post(url, action)
        self.charity.refresh_from_db()
        self.assertEqual(self.charity.status, CharityStatus.PENDING_REVIEW)

        self.charity.admin_notes = 'Registration number not found'
        self.charity.save()
        self.client.post(url, action)
        self.charity.refresh_from_db()
        self.assertEqual(self.charity.status, CharityStatus.REJECTED)
        self.assertEqual(self.charity.rejection_reason, 'Registration number not found')


class CharityAPITests(TemporaryMediaMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.admin = make_user('admin@example.com', role=Role.ADMIN)
        self.owner = make_user('owner@example.com', role=Role.CHARITY)
        self.donor = make_user('donor@example.com', first_name='Dana', last_name='Donor')
        self.approved = make_charity(public_name='Approved Charity')
        self.pending = make_charity(self.owner, status=CharityStatus.PENDING_REVIEW, public_name='Pending Charity')

    def test_public_list_shows_approved_only(self):
        response = self.client.get(reverse('charity-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['public_name'] for c in response.data], ['Approved Charity'])
        self.assertEqual(response.data[0]['status_badge']['label'], 'Approved')
        self.assertTrue(Event.objects.filter(event_name=EventName.CHARITIES_LIST_VIEWED, user=None).exists())

    def test_pending_charity_hidden_from_public(self):
        response = self.client.get(reverse('charity-detail', args=[self.pending.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_sees_own_pending_charity(self):
        self.client.force_authenticate(self.owner)
        response = self.client.get(reverse('charity-detail', args=[self.pending.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('rejection_reason', response.data)
        self.assertTrue(Event.objects.filter(event_name=EventName.CHARITY_VIEWED, user=self.owner).exists())

    def test_public_detail_hides_application_fields(self):
        response = self.client.get(reverse('charity-detail', args=[self.approved.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('registration_number', response.data)

    def test_charity_user_submits_application_with_photo(self):
        newcomer = make_user('new@example.com', role=Role.CHARITY)
        self.client.force_authenticate(newcomer)
        data = dict(APPLICATION, photo=png_upload())

        response = self.client.post(reverse('charity-list'), data, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending_review')
        self.assertTrue(response.data['photo_url'].endswith('/logo.png'))
        self.assertNotIn('photo_warning', response.data)

    def test_storage_failure_still_creates_application(self):
        newcomer = make_user('new@example.com', role=Role.CHARITY)
        self.client.force_authenticate(newcomer)
        data = dict(APPLICATION, photo=png_upload())

        with mock.patch.object(FileSystemStorage, 'save', side_effect=SuspiciousFileOperation('bad path')):
            response = self.client.post(reverse('charity-list'), data, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['photo_url'])
        self.assertIn('photo_warning', response.data)
        self.assertEqual(Charity.objects.filter(public_name='Helping Hands').count(), 1)

    def test_donor_cannot_submit_application(self):
        self.client.force_authenticate(self.donor)
        response = self.client.post(reverse('charity-list'), APPLICATION, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_second_application_conflicts(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(reverse('charity-list'), APPLICATION, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_owner_patches_pending_application(self):
        self.client.force_authenticate(self.owner)
        response = self.client.patch(
            reverse('charity-detail', args=[self.pending.pk]),
            {'description': 'Updated'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Updated')

    def test_owner_replaces_photo(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(
            reverse('charity-photo', args=[self.pending.pk]),
            {'photo': png_upload()},
            format='multipart'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['photo_url'], f"/media/charity-photos/{self.pending.pk}/logo.png")

    def test_mine_dashboard(self):
        Donation.objects.create(donor=self.donor, charity=self.pending, amount_cents=1500, status=DonationStatus.PAID)
        self.client.force_authenticate(self.owner)

        response = self.client.get(reverse('charity-mine'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['charity']['id'], str(self.pending.pk))
        self.assertEqual(response.data['total_amount'], 1500)
        self.assertEqual(response.data['donations'][0]['donor_name'], 'Dana Donor')
        self.assertTrue(Event.objects.filter(event_name=EventName.CHARITY_DASHBOARD_VIEWED).exists())

    def test_mine_without_charity(self):
        self.client.force_authenticate(self.donor)
        response = self.client.get(reverse('charity-mine'))
        self.assertIsNone(response.data['charity'])

    def test_admin_listing_with_counts(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse('admin-charity-list'), {'status': 'pending_review'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['counts']['all'], 2)
        self.assertEqual([c['public_name'] for c in response.data['results']], ['Pending Charity'])

    def test_admin_listing_forbidden_for_others(self):
        self.client.force_authenticate(self.owner)
        response = self.client.get(reverse('admin-charity-list'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_approves_then_cannot_approve_again(self):
        self.client.force_authenticate(self.admin)
        url = reverse('admin-charity-approve', args=[self.pending.pk])

        response = self.client.post(url, {'notes': 'ok'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')

        again = self.client.post(url, {}, format='json')
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)

    def test_admin_reject_requires_reason(self):
        self.client.force_authenticate(self.admin)
        url = reverse('admin-charity-reject', args=[self.pending.pk])

        response = self.client.post(url, {'reason': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'reason': 'Missing documents'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['rejection_reason'], 'Missing documents')
