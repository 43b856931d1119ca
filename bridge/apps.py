from django.apps import AppConfig


class BridgeConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'bridge'
    verbose_name = 'Mentor Bridge'
