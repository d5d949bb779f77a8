from django.contrib import admin, messages

from mainapps.common.exceptions import StateError, ValidationError
from mainapps.permit import policies

from .models import Charity, CharityStatus, CharityUser
from .services import CharityLifecycleService


class CharityUserInline(admin.TabularInline):
    model = CharityUser
    extra = 0
    readonly_fields = ['created_at']


@admin.register(Charity)
class CharityAdmin(admin.ModelAdmin):
    """
    Review fields are read-only here; status changes go through the
    approve/reject actions, which call CharityLifecycleService.
    """
    list_display = ['public_name', 'status', 'currency', 'created_at', 'reviewed_by', 'reviewed_at']
    list_filter = ['status', 'currency', 'created_at']
    search_fields = ['public_name', 'legal_name', 'registration_number', 'contact_email']
    readonly_fields = [
        field for field in policies.ADMIN_REVIEW_FIELDS if field != 'admin_notes'
    ] + ['created_at', 'updated_at']
    inlines = [CharityUserInline]

    fieldsets = (
        ('Application', {
            'fields': (
                'public_name', 'legal_name', 'registration_number', 'description',
                'website', 'contact_email', 'contact_phone', 'currency', 'photo_url'
            )
        }),
        ('Review', {
            'fields': ('status', 'rejection_reason', 'admin_notes', 'reviewed_by', 'reviewed_at', 'approved_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    actions = ['approve_selected_charities', 'reject_selected_charities']

    def approve_selected_charities(self, request, queryset):
        approved = 0
        for charity in queryset.filter(status=CharityStatus.PENDING_REVIEW):
            try:
                CharityLifecycleService.approve(charity.pk, request.user, notes=charity.admin_notes)
                approved += 1
            except StateError as e:
                self.message_user(request, f"{charity}: {e.detail}", messages.WARNING)
        self.message_user(request, f"{approved} charities approved.")
    approve_selected_charities.short_description = "Approve selected charities"

    def reject_selected_charities(self, request, queryset):
        """Reject using each charity's admin notes as the rejection reason."""
        rejected = 0
        for charity in queryset.filter(status=CharityStatus.PENDING_REVIEW):
            try:
                CharityLifecycleService.reject(
                    charity.pk, request.user, charity.admin_notes, notes=charity.admin_notes
                )
                rejected += 1
            except ValidationError:
                self.message_user(
                    request,
                    f"{charity}: write the rejection reason in admin notes first.",
                    messages.WARNING
                )
            except StateError as e:
                self.message_user(request, f"{charity}: {e.detail}", messages.WARNING)
        self.message_user(request, f"{rejected} charities rejected.")
    reject_selected_charities.short_description = "Reject selected charities (reason from admin notes)"


@admin.register(CharityUser)
class CharityUserAdmin(admin.ModelAdmin):
    list_display = ['charity', 'user', 'role', 'created_at']
    list_filter = ['role']
    search_fields = ['charity__public_name', 'user__email']
