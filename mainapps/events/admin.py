from django.contrib import admin

from .models import Event


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['event_name', 'user', 'created_at']
    list_filter = ['event_name', 'created_at']
    search_fields = ['event_name', 'user__email']
    readonly_fields = ['user', 'event_name', 'metadata', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
