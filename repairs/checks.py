"""
repairs/checks.py
=================
System checks run by `manage.py check` / runserver start-up. Missing
credentials are warnings so migrations and tests still run without them.
"""

from django.conf import settings
from django.core.checks import Tags, Warning, register

REQUIRED_SETTINGS = [
    ("ADMIN_USER",                "repairs.W001", "admin login is disabled"),
    ("ADMIN_PASS",                "repairs.W002", "admin login is disabled"),
    ("ADMIN_COOKIE_SECRET",       "repairs.W003", "admin tokens cannot be signed"),
    ("LINE_CHANNEL_SECRET",       "repairs.W004", "LINE webhook calls will be refused"),
    ("LINE_CHANNEL_ACCESS_TOKEN", "repairs.W005", "LINE notifications will not be sent"),
    ("LINE_USER_ID",              "repairs.W006", "new jobs have no LINE recipient"),
]


@register(Tags.security)
def check_environment(app_configs, **kwargs):
    return [
        Warning(f"{name} is not set; {effect}.", hint=f"Set the {name} environment variable.", id=check_id)
        for name, check_id, effect in REQUIRED_SETTINGS
        if not getattr(settings, name, "")
    ]
