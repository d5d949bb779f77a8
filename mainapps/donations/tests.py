from datetime import date, datetime, timezone as dt_timezone

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from mainapps.accounts.models import Role
from mainapps.charities.models import CharityStatus
from mainapps.common.exceptions import (
    AuthorizationError, NotFoundError, StateError, ValidationError,
)
from mainapps.common.generation import RequestGeneration
from mainapps.common.testing import make_charity, make_user
from mainapps.events.models import Event, EventName

from . import analytics
from .analytics import DonationRecord
from .currency import currency_name, currency_symbol, format_amount, parse_amount_to_cents
from .models import Donation, DonationStatus, TaxCertificate
from .services import DonationService, build_dashboard, charity_records, donor_records


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=dt_timezone.utc)


def record(charity_id, amount, donated_at, name=None, currency='USD', message=None):
    return DonationRecord(
        donation_id=f"d-{charity_id}-{amount}-{donated_at}",
        charity_id=charity_id,
        charity_name=name or f"Charity {charity_id}",
        amount_cents=amount,
        currency=currency,
        donated_at=donated_at,
        message=message,
    )


class CurrencyTests(SimpleTestCase):
    def test_format_amount_uses_symbol_and_thousands_separator(self):
        self.assertEqual(format_amount(234600, 'ZAR'), 'R2,346.00')
        self.assertEqual(format_amount(2500, 'USD'), '$25.00')
        self.assertEqual(format_amount(123456789, 'GBP'), '£1,234,567.89')
        self.assertEqual(format_amount(5, 'EUR'), '€0.05')

    def test_unknown_currency_falls_back(self):
        self.assertEqual(currency_symbol('JPY'), '$')
        self.assertEqual(format_amount(100, 'JPY'), '$1.00')
        self.assertEqual(currency_name('JPY'), 'JPY')
        self.assertEqual(currency_name('ZAR'), 'South African Rand')

    def test_parse_amount_to_cents(self):
        self.assertEqual(parse_amount_to_cents('25.5'), 2550)
        self.assertEqual(parse_amount_to_cents(' 10 '), 1000)
        self.assertEqual(parse_amount_to_cents('0.005'), 1)
        self.assertEqual(parse_amount_to_cents('19.999'), 2000)

    def test_parse_amount_upper_bound(self):
        self.assertEqual(parse_amount_to_cents('92233720368547758.07'), 2 ** 63 - 1)
        for value in ['1e30', '92233720368547758.08', '1e999999']:
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    parse_amount_to_cents(value)

    @override_settings(MAX_DONATION_CENTS=10000)
    def test_parse_amount_respects_configured_maximum(self):
        self.assertEqual(parse_amount_to_cents('100'), 10000)
        with self.assertRaises(ValidationError):
            parse_amount_to_cents('100.01')

    def test_parse_amount_rejects_non_positive_and_garbage(self):
        for value in ['0', '-5', '', 'abc', '0.004', 'NaN', 'Infinity', None]:
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    parse_amount_to_cents(value)


class AggregationTests(SimpleTestCase):
    def test_total_amount(self):
        donations = [record('a', 100, utc(2024, 1, 1)), record('b', 250, utc(2024, 2, 1))]
        self.assertEqual(analytics.total_amount(donations), 350)
        self.assertEqual(analytics.total_amount([]), 0)

    def test_count_by_charity_keeps_first_name_seen(self):
        donations = [
            record('a', 100, utc(2024, 1, 1), name='Old Name'),
            record('a', 50, utc(2024, 1, 2), name='New Name'),
        ]
        self.assertEqual(analytics.count_by_charity(donations), {'a': {'name': 'Old Name', 'amount': 150}})

    def test_top_charities_ranked_with_stable_ties(self):
        donations = [
            record('a', 500, utc(2024, 1, 1)),
            record('b', 700, utc(2024, 1, 2)),
            record('c', 500, utc(2024, 1, 3)),
        ]
        top = analytics.top_charities(donations, 5)
        self.assertEqual([entry['charity_id'] for entry in top], ['b', 'a', 'c'])
        self.assertEqual([entry['amount'] for entry in top], [700, 500, 500])

        self.assertEqual(len(analytics.top_charities(donations, 2)), 2)
        self.assertEqual(analytics.top_charities([], 5), [])

    def test_monthly_totals_window(self):
        donations = [
            record('a', 1000, utc(2024, 3, 1)),
            record('a', 500, utc(2024, 1, 10)),
            record('b', 999, utc(2023, 9, 30)),
        ]
        months = analytics.monthly_totals(donations, date(2024, 3, 15), 6)

        self.assertEqual(len(months), 6)
        self.assertEqual(months[0], {'month': '2023-10', 'label': 'Oct 2023', 'amount': 0})
        self.assertEqual(months[-1]['month'], '2024-03')
        self.assertEqual([m['amount'] for m in months], [0, 0, 0, 500, 0, 1000])

    def test_monthly_totals_sum_matches_total_inside_window(self):
        donations = [
            record('a', 300, utc(2024, 6, 30)),
            record('b', 700, utc(2024, 2, 1)),
            record('c', 150, utc(2024, 1, 31)),
        ]
        months = analytics.monthly_totals(donations, utc(2024, 6, 1), 6)
        self.assertEqual(sum(m['amount'] for m in months), analytics.total_amount(donations))
        self.assertTrue(all(m['amount'] >= 0 for m in months))

    def test_monthly_totals_empty_window(self):
        self.assertEqual(analytics.monthly_totals([], date(2024, 1, 1), 0), [])

    def test_monthly_totals_crosses_year_boundary(self):
        months = analytics.monthly_totals([], date(2024, 2, 10), 3)
        self.assertEqual([m['month'] for m in months], ['2023-12', '2024-01', '2024-02'])


class TaxYearTests(SimpleTestCase):
    def test_window_for_mid_year_reference(self):
        start, end = analytics.tax_year_window(date(2024, 6, 15))
        self.assertEqual(start, date(2024, 3, 1))
        self.assertEqual(end, date(2025, 2, 28))

    def test_window_for_leap_february(self):
        start, end = analytics.tax_year_window(date(2024, 2, 29))
        self.assertEqual(start, date(2023, 3, 1))
        self.assertEqual(end, date(2024, 2, 29))

    def test_label(self):
        self.assertEqual(analytics.tax_year_label(date(2024, 6, 15)), '2024/2025')
        self.assertEqual(analytics.tax_year_label(date(2024, 2, 1)), '2023/2024')

    def test_february_and_march_boundaries(self):
        donations = [
            record('a', 100, utc(2024, 2, 15)),
            record('a', 200, utc(2024, 3, 1)),
            record('a', 400, utc(2025, 2, 28)),
            record('a', 800, utc(2025, 3, 1)),
        ]
        self.assertEqual(analytics.tax_year_total(donations, date(2024, 6, 15)), 600)
        self.assertEqual(analytics.tax_year_total(donations, date(2024, 2, 28)), 100)


class FilterAndExportTests(SimpleTestCase):
    def setUp(self):
        self.donations = [
            record('a', 100, utc(2024, 5, 1), name='Acme'),
            record('b', 200, utc(2023, 5, 1), name='Bravo'),
            record('a', 300, utc(2023, 7, 1), name='Acme'),
        ]

    def test_filter_by_charity_and_year(self):
        self.assertEqual(len(analytics.filter_donations(self.donations)), 3)
        self.assertEqual(len(analytics.filter_donations(self.donations, charity_id='a')), 2)
        self.assertEqual(len(analytics.filter_donations(self.donations, year=2023)), 2)
        only = analytics.filter_donations(self.donations, charity_id='a', year='2023')
        self.assertEqual([d.amount_cents for d in only], [300])

    def test_filter_options(self):
        options = analytics.filter_options(self.donations)
        self.assertEqual(options['years'], [2024, 2023])
        self.assertEqual(options['charities'], [
            {'charity_id': 'a', 'name': 'Acme'},
            {'charity_id': 'b', 'name': 'Bravo'},
        ])

    def test_to_csv_single_donation(self):
        donation = record('a', 2500, utc(2024, 1, 5), name='Acme', message='Say "hi"')
        self.assertEqual(
            analytics.to_csv([donation]),
            'Date,Charity,Amount,Currency,Message\n'
            'Jan 5, 2024,"Acme",$25.00,USD,"Say ""hi"""'
        )

    def test_to_csv_empty_message_and_order(self):
        lines = analytics.to_csv(self.donations).split('\n')
        self.assertEqual(lines[0], analytics.CSV_HEADER)
        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[1].endswith(',""'))
        self.assertTrue(lines[2].startswith('May 1, 2023,"Bravo"'))

    def test_export_filename(self):
        self.assertEqual(analytics.export_filename(date(2024, 7, 9)), 'donations-2024-07-09.csv')


class DashboardTests(SimpleTestCase):
    def test_totals_cover_all_donations_and_list_is_filtered(self):
        donations = [
            record('a', 1000, utc(2024, 5, 1), name='Acme'),
            record('b', 500, utc(2023, 12, 1), name='Bravo'),
        ]
        payload = build_dashboard(donations, reference_date=utc(2024, 6, 15), charity_id='b')

        self.assertEqual(payload['total_amount'], 1500)
        self.assertEqual(payload['donation_count'], 2)
        self.assertEqual(payload['tax_year']['label'], '2024/2025')
        self.assertEqual(payload['tax_year']['total_amount'], 1000)
        self.assertEqual(payload['tax_year']['start'], '2024-03-01')
        self.assertEqual(len(payload['monthly_totals']), 6)
        self.assertEqual(payload['top_charities'][0]['charity_id'], 'a')
        self.assertEqual([d['charity_id'] for d in payload['donations']], ['b'])
        self.assertEqual(payload['donations'][0]['formatted_amount'], '$5.00')


class DonationServiceTests(TestCase):
    def setUp(self):
        self.donor = make_user('donor@example.com', first_name='Dana', last_name='Donor')
        self.owner = make_user('owner@example.com', role=Role.CHARITY)
        self.charity = make_charity(self.owner, currency='ZAR')

    def test_create_donation_records_paid_in_charity_currency(self):
        donation = DonationService.create_donation(self.donor, self.charity.pk, '25.5', '  Keep it up ')

        self.assertEqual(donation.amount_cents, 2550)
        self.assertEqual(donation.currency, 'ZAR')
        self.assertEqual(donation.status, DonationStatus.PAID)
        self.assertEqual(donation.message, 'Keep it up')
        self.assertTrue(Event.objects.filter(event_name=EventName.DONATE_SUCCEEDED, user=self.donor).exists())

    def test_invalid_amount_rejected_before_any_write(self):
        for amount in ['0', '-5']:
            with self.subTest(amount=amount):
                with self.assertRaises(ValidationError):
                    DonationService.create_donation(self.donor, self.charity.pk, amount)
        self.assertFalse(Donation.objects.exists())

    def test_charity_must_be_approved(self):
        pending = make_charity(status=CharityStatus.PENDING_REVIEW, public_name='Pending')
        with self.assertRaises(StateError):
            DonationService.create_donation(self.donor, pending.pk, '10')
        with self.assertRaises(NotFoundError):
            DonationService.create_donation(self.donor, 'not-a-uuid', '10')

    def test_only_donors_can_donate(self):
        with self.assertRaises(AuthorizationError):
            DonationService.create_donation(self.owner, self.charity.pk, '10')

    def test_records_are_newest_first_with_names(self):
        Donation.objects.create(donor=self.donor, charity=self.charity, amount_cents=100,
                                status=DonationStatus.PAID, donated_at=utc(2024, 1, 1))
        Donation.objects.create(donor=self.donor, charity=self.charity, amount_cents=200,
                                status=DonationStatus.PAID, donated_at=utc(2024, 2, 1))

        records = donor_records(self.donor)
        self.assertEqual([r.amount_cents for r in records], [200, 100])
        self.assertEqual(records[0].charity_name, 'Helping Hands')

        received = charity_records(self.charity)
        self.assertEqual(received[0].donor_name, 'Dana Donor')


class DonationAPITests(APITestCase):
    def setUp(self):
        cache.clear()
        self.donor = make_user('donor@example.com', first_name='Dana', last_name='Donor')
        self.other_donor = make_user('other@example.com')
        self.owner = make_user('owner@example.com', role=Role.CHARITY)
        self.charity = make_charity(self.owner, public_name='Acme')
        self.list_url = reverse('donation-list')

    def test_donor_creates_donation(self):
        self.client.force_authenticate(self.donor)
        response = self.client.post(self.list_url, {'charity': str(self.charity.pk), 'amount': '25.5'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount_cents'], 2550)
        self.assertEqual(response.data['formatted_amount'], '$25.50')

    def test_invalid_amount_is_400(self):
        self.client.force_authenticate(self.donor)
        response = self.client.post(self.list_url, {'charity': str(self.charity.pk), 'amount': '-5'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)
        self.assertFalse(Donation.objects.exists())

    def test_oversized_amount_is_400(self):
        self.client.force_authenticate(self.donor)
        response = self.client.post(self.list_url, {'charity': str(self.charity.pk), 'amount': '1e30'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)
        self.assertFalse(Donation.objects.exists())

    def test_charity_user_cannot_donate(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(self.list_url, {'charity': str(self.charity.pk), 'amount': '5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_shows_only_own_donations(self):
        Donation.objects.create(donor=self.donor, charity=self.charity, amount_cents=100, status=DonationStatus.PAID)
        Donation.objects.create(donor=self.other_donor, charity=self.charity, amount_cents=200, status=DonationStatus.PAID)

        self.client.force_authenticate(self.donor)
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['amount_cents'] for d in response.data], [100])

    def test_owner_lists_donations_received(self):
        Donation.objects.create(donor=self.donor, charity=self.charity, amount_cents=100, status=DonationStatus.PAID)
        Donation.objects.create(donor=self.other_donor, charity=self.charity, amount_cents=200, status=DonationStatus.PAID)

        self.client.force_authenticate(self.owner)
        response = self.client.get(self.list_url)
        self.assertEqual(len(response.data), 2)

    def test_list_filters_by_amount(self):
        Donation.objects.create(donor=self.donor, charity=self.charity, amount_cents=100, status=DonationStatus.PAID)
        Donation.objects.create(donor=self.donor, charity=self.charity, amount_cents=5000, status=DonationStatus.PAID)

        self.client.force_authenticate(self.donor)
        response = self.client.get(self.list_url, {'amount_min': 1000})
        self.assertEqual([d['amount_cents'] for d in response.data], [5000])

    def test_started_tracks_event(self):
        self.client.force_authenticate(self.donor)
        response = self.client.post(reverse('donation-started'), {'charity': str(self.charity.pk)}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        event = Event.objects.get(event_name=EventName.DONATE_STARTED)
        self.assertEqual(event.metadata, {'charity_id': str(self.charity.pk)})

    def test_dashboard(self):
        DonationService.create_donation(self.donor, self.charity.pk, '10')
        self.client.force_authenticate(self.donor)
        response = self.client.get(reverse('donation-dashboard'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_amount'], 1000)
        self.assertEqual(response.data['top_charities'][0]['name'], 'Acme')
        self.assertEqual(len(response.data['monthly_totals']), 6)

    def test_dashboard_rejects_bad_year(self):
        self.client.force_authenticate(self.donor)
        response = self.client.get(reverse('donation-dashboard'), {'year': 'soon'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_superseded_dashboard_request_is_discarded(self):
        RequestGeneration(f"donor-dashboard:{self.donor.pk}", 5).begin()
        self.client.force_authenticate(self.donor)

        stale = self.client.get(reverse('donation-dashboard'), HTTP_X_REQUEST_GENERATION='3')
        self.assertEqual(stale.status_code, status.HTTP_409_CONFLICT)

        fresh = self.client.get(reverse('donation-dashboard'), HTTP_X_REQUEST_GENERATION='6')
        self.assertEqual(fresh.status_code, status.HTTP_200_OK)

    def test_export_csv(self):
        DonationService.create_donation(self.donor, self.charity.pk, '25', 'Say "hi"')
        self.client.force_authenticate(self.donor)
        response = self.client.get(reverse('donation-export'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertRegex(response['Content-Disposition'], r'attachment; filename="donations-\d{4}-\d{2}-\d{2}\.csv"')
        lines = response.content.decode('utf-8').split('\n')
        self.assertEqual(lines[0], 'Date,Charity,Amount,Currency,Message')
        self.assertTrue(lines[1].endswith(',"Acme",$25.00,USD,"Say ""hi"""'))

    def test_tax_certificates_are_scoped_to_donor(self):
        TaxCertificate.objects.create(donor=self.donor, charity=self.charity, tax_year='2024/2025', total_amount_cents=1000)
        TaxCertificate.objects.create(donor=self.other_donor, charity=self.charity, tax_year='2024/2025', total_amount_cents=2000)

        self.client.force_authenticate(self.donor)
        response = self.client.get(reverse('tax-certificate-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['total_amount_cents'] for c in response.data], [1000])
        self.assertEqual(response.data[0]['formatted_amount'], '$10.00')

    def test_requires_onboarding(self):
        newcomer = make_user('new@example.com', onboarded=False)
        self.client.force_authenticate(newcomer)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
