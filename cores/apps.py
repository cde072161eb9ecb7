from django.apps import AppConfig


class CoresConfig(AppConfig):
    name = 'cores'
    default_auto_field = 'django.db.models.BigAutoField'
