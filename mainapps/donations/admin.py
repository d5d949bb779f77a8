from django.contrib import admin

from .models import Donation, TaxCertificate


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ['id', 'donor', 'charity', 'formatted_amount', 'currency', 'status', 'donated_at']
    list_filter = ['status', 'currency', 'donated_at']
    search_fields = ['donor__email', 'charity__public_name', 'message']
    date_hierarchy = 'donated_at'
    readonly_fields = ['id']


@admin.register(TaxCertificate)
class TaxCertificateAdmin(admin.ModelAdmin):
    list_display = ['tax_year', 'donor', 'charity', 'formatted_amount', 'status', 'issued_at']
    list_filter = ['status', 'tax_year', 'currency']
    search_fields = ['donor__email', 'charity__public_name']
