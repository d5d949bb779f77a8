import django_filters

from .models import Donation, TaxCertificate


class DonationFilter(django_filters.FilterSet):
    amount_min = django_filters.NumberFilter(field_name='amount_cents', lookup_expr='gte')
    amount_max = django_filters.NumberFilter(field_name='amount_cents', lookup_expr='lte')
    donated_from = django_filters.DateFilter(field_name='donated_at', lookup_expr='date__gte')
    donated_to = django_filters.DateFilter(field_name='donated_at', lookup_expr='date__lte')

    class Meta:
        model = Donation
        fields = ['charity', 'status', 'currency']


class TaxCertificateFilter(django_filters.FilterSet):
    class Meta:
        model = TaxCertificate
        fields = ['charity', 'tax_year', 'status']
