from django.contrib import admin

from .models import Profile, User


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'get_user_email', 'role', 'onboarding_completed_at', 'created_at')
    list_filter = ('role',)
    search_fields = ('full_name', 'email', 'user__email', 'id_number', 'tax_reference')
    readonly_fields = ('created_at', 'updated_at')

    def get_user_email(self, obj):
        user = getattr(obj, 'user', None)
        return user.email if user else "No User"
    get_user_email.short_description = 'Email'


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'profile', 'is_staff', 'is_active', 'date_joined')
    list_filter = ('is_staff', 'is_active')
    search_fields = ('email', 'first_name', 'last_name')
    exclude = ('password',)
