"""Shared fixtures for the repairs test-suite."""

from django.test import override_settings

from repairs.auth import sign_admin_token
from repairs.models import RepairRequest

ADMIN_USER   = "itadmin"
ADMIN_PASS   = "correct horse"
ADMIN_SECRET = "cookie-secret"
LINE_SECRET  = "line-channel-secret"

configured_env = override_settings(
    ADMIN_USER=ADMIN_USER,
    ADMIN_PASS=ADMIN_PASS,
    ADMIN_COOKIE_SECRET=ADMIN_SECRET,
    LINE_CHANNEL_SECRET=LINE_SECRET,
    LINE_CHANNEL_ACCESS_TOKEN="line-access-token",
    LINE_USER_ID="U-admin-group",
    LINE_NOTIFY_TOKEN="",
    WEBHOOK_SITE_URL="",
    APP_URL="https://repair.example.org/",
)


def login(client):
    client.cookies["admin_auth"] = sign_admin_token(ADMIN_USER, ADMIN_SECRET)


def make_repair(**overrides):
    fields = {
        "full_name": "สมชาย ใจดี",
        "dept_name": "อายุรกรรม",
        "dept_building": "อาคาร 1",
        "dept_floor": "3",
        "device": "คอมพิวเตอร์",
        "device_id": "NRH-PC-0142",
        "issue": "เปิดเครื่องไม่ติด",
        "phone": "1234",
    }
    fields.update(overrides)
    return RepairRequest.objects.create(**fields)
