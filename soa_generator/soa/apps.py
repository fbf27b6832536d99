from django.apps import AppConfig


class SoaConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "soa"
    verbose_name = "Statements of account"
