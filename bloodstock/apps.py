from django.apps import AppConfig


class BloodstockConfig(AppConfig):
    name = "bloodstock"
    verbose_name = "Blood stock"
    default_auto_field = "django.db.models.BigAutoField"
