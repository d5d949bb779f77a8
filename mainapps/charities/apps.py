from django.apps import AppConfig


class CharitiesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'mainapps.charities'
    label = 'charities'
