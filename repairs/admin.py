"""
repairs/admin.py
================
Registers RepairRequest with Django's built-in admin interface
(mounted at /django-admin/), a fallback management UI for IT staff with
Django superuser accounts.
"""

from django.contrib import admin
from .models import RepairRequest


@admin.register(RepairRequest)
class RepairRequestAdmin(admin.ModelAdmin):
    list_display = [
        "job_id", "full_name", "dept_name", "device", "device_id",
        "status", "handler_tag", "created_at", "updated_at",
    ]
    list_filter   = ["status", "dept_name", "device"]
    search_fields = ["job_id", "full_name", "device_id", "issue", "phone"]
    readonly_fields = ["job_id", "request_ip", "handler_id", "created_at", "updated_at"]

    fieldsets = [
        ("Job", {"fields": ["job_id", "status"]}),
        ("Requester",       {"fields": ["full_name", "dept_name", "dept_building", "dept_floor", "phone", "request_ip"]}),
        ("Device & Issue",  {"fields": ["device", "device_id", "issue", "notes"]}),
        ("Resolution",      {"fields": ["handler_id", "handler_tag", "receipt_no", "reject_reason"]}),
        ("Timestamps",      {"fields": ["created_at", "updated_at"]}),
    ]
