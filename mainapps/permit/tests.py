from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from mainapps.accounts.models import Role
from mainapps.charities.models import CharityStatus
from mainapps.common.exceptions import AuthorizationError
from mainapps.common.testing import make_charity, make_user
from mainapps.donations.models import Donation, DonationStatus

from . import policies


class RolePredicateTests(TestCase):
    def setUp(self):
        self.donor = make_user('donor@example.com')
        self.owner = make_user('owner@example.com', role=Role.CHARITY)
        self.admin = make_user('admin@example.com', role=Role.ADMIN)
        self.superuser = make_user('root@example.com', role=None, is_superuser=True)
        self.newcomer = make_user('new@example.com', onboarded=False)

    def test_admin_is_superuser_or_admin_role(self):
        self.assertTrue(policies.is_admin(self.admin))
        self.assertTrue(policies.is_admin(self.superuser))
        self.assertFalse(policies.is_admin(self.donor))
        self.assertFalse(policies.is_admin(AnonymousUser()))

    def test_can_donate_needs_onboarded_donor(self):
        self.assertTrue(policies.can_donate(self.donor))
        self.assertFalse(policies.can_donate(self.newcomer))
        self.assertFalse(policies.can_donate(self.owner))
        self.assertFalse(policies.can_donate(AnonymousUser()))

    def test_require_role(self):
        policies.require_role(self.owner, Role.CHARITY)
        policies.require_role(self.admin, Role.CHARITY)
        with self.assertRaises(AuthorizationError):
            policies.require_role(self.donor, Role.CHARITY)


class VisibilityTests(TestCase):
    def setUp(self):
        self.donor = make_user('donor@example.com')
        self.other_donor = make_user('other@example.com')
        self.owner = make_user('owner@example.com', role=Role.CHARITY)
        self.admin = make_user('admin@example.com', role=Role.ADMIN)
        self.approved = make_charity(public_name='Approved')
        self.owned = make_charity(self.owner, status=CharityStatus.PENDING_REVIEW, public_name='Owned')
        self.rejected = make_charity(status=CharityStatus.REJECTED, public_name='Rejected', rejection_reason='No')

    def test_visible_charities(self):
        self.assertEqual(set(policies.visible_charities(AnonymousUser())), {self.approved})
        self.assertEqual(set(policies.visible_charities(self.donor)), {self.approved})
        self.assertEqual(set(policies.visible_charities(self.owner)), {self.approved, self.owned})
        self.assertEqual(set(policies.visible_charities(self.admin)), {self.approved, self.owned, self.rejected})

    def test_can_edit_application(self):
        self.assertTrue(policies.can_edit_application(self.owner, self.owned))
        self.assertFalse(policies.can_edit_application(self.donor, self.owned))

        self.owned.status = CharityStatus.APPROVED
        self.assertFalse(policies.can_edit_application(self.owner, self.owned))

    def test_visible_donations(self):
        mine = Donation.objects.create(donor=self.donor, charity=self.owned, amount_cents=100, status=DonationStatus.PAID)
        theirs = Donation.objects.create(donor=self.other_donor, charity=self.approved, amount_cents=200, status=DonationStatus.PAID)

        self.assertEqual(set(policies.visible_donations(self.donor)), {mine})
        self.assertEqual(set(policies.visible_donations(self.owner)), {mine})
        self.assertEqual(set(policies.visible_donations(self.admin)), {mine, theirs})
        self.assertFalse(policies.visible_donations(AnonymousUser()).exists())
