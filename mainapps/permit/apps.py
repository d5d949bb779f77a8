from django.apps import AppConfig


class PermitConfig(AppConfig):
    name = 'mainapps.permit'
    label = 'permit'
