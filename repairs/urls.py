"""
repairs/urls.py
===============
URL patterns for the repairs app.
"""

from django.urls import path
from . import views

urlpatterns = [
    # ── Public pages
    path("",         views.repair_form, name="repair_form"),
    path("status/",  views.status_page, name="status_page"),

    # ── Admin pages (cookie-guarded)
    path("admin/login/", views.admin_login_page, name="admin_login"),
    path("admin/",       views.admin_dashboard,  name="admin_dashboard"),

    # ── JSON API
    path("api/admin/login",          views.api_admin_login,         name="api_admin_login"),
    path("api/admin/logout",         views.api_admin_logout,        name="api_admin_logout"),
    path("api/submit",               views.api_submit,              name="api_submit"),
    path("api/reports",              views.api_reports,             name="api_reports"),
    path("api/export",               views.api_export,              name="api_export"),
    path("api/whoami",               views.api_whoami,              name="api_whoami"),
    path("api/webhook-logs",         views.api_webhook_logs,        name="api_webhook_logs"),
    path("api/sync-webhook-events",  views.api_sync_webhook_events, name="api_sync_webhook_events"),

    # ── LINE Messaging API webhook
    path("api/line/interactions",    views.line_interactions,       name="line_interactions"),
]
