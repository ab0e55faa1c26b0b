from django.apps import AppConfig


class RepairsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "repairs"
    verbose_name = "IT Repair Requests"

    def ready(self):
        from . import checks  # noqa: F401  registers system checks
