"""
repairs/line.py
===============
LINE Messaging API integration.

  verify_signature(body, signature, channel_secret)  — inbound webhook check
  LineClient.push / reply                            — outbound messages
  send_notify(token, message)                        — LINE Notify fallback
  build_repair_flex(repair, app_url)                 — new-job card with
                                                       Accept / Reject buttons

Outbound calls are best-effort: failures are logged and reported as False,
never raised into the request that triggered them.
"""

import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

LINE_API_BASE    = "https://api.line.me/v2/bot/message"
LINE_NOTIFY_URL  = "https://notify-api.line.me/api/notify"
WEBHOOK_SITE_API = "https://webhook.site/token/{token}/requests"

APPROVE_PREFIX = "approve_job:"
REJECT_PREFIX  = "reject_job:"

HOSPITAL_NAME = "โรงพยาบาลนพรัตน์ราชธานี"


# ---------------------------------------------------------------------------
# SIGNATURE
# ---------------------------------------------------------------------------

def compute_signature(body: bytes, channel_secret: str) -> str:
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(body: bytes, signature: str, channel_secret: str) -> bool:
    if not signature or not channel_secret:
        return False
    return hmac.compare_digest(compute_signature(body, channel_secret), signature)


# ---------------------------------------------------------------------------
# CLIENT
# ---------------------------------------------------------------------------

def text_message(text: str) -> dict:
    return {"type": "text", "text": text}


class LineClient:
    """Thin wrapper over the push and reply endpoints."""

    def __init__(self, access_token: str, timeout: int = 10):
        self.access_token = access_token
        self.timeout = timeout

    def _post(self, endpoint: str, body: dict) -> bool:
        if not self.access_token:
            logger.warning("No LINE access token, skipping %s", endpoint)
            return False

        try:
            res = requests.post(
                f"{LINE_API_BASE}/{endpoint}",
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.error("LINE %s error: %s", endpoint, exc)
            return False

        if not res.ok:
            logger.error("LINE %s failed: %s %s", endpoint, res.status_code, res.text[:200])
            return False
        logger.info("LINE %s sent (%s)", endpoint, res.status_code)
        return True

    def push(self, to: str, messages: list) -> bool:
        return self._post("push", {"to": to, "messages": messages})

    def reply(self, reply_token: str, messages: list) -> bool:
        return self._post("reply", {"replyToken": reply_token, "messages": messages})

    def push_text(self, to: str, text: str) -> bool:
        return self.push(to, [text_message(text)])

    def reply_text(self, reply_token: str, text: str) -> bool:
        if not reply_token:
            return False
        return self.reply(reply_token, [text_message(text)])


def send_notify(token: str, message: str, timeout: int = 10) -> bool:
    """LINE Notify, used only when the Messaging API push did not go through."""
    try:
        res = requests.post(
            LINE_NOTIFY_URL,
            headers={"Authorization": f"Bearer {token}"},
            data={"message": message},
            timeout=timeout,
        )
    except requests.exceptions.RequestException as exc:
        logger.error("LINE Notify error: %s", exc)
        return False
    if not res.ok:
        logger.error("LINE Notify failed: %s", res.status_code)
    return res.ok


# ---------------------------------------------------------------------------
# WEBHOOK.SITE MIRROR
# ---------------------------------------------------------------------------

def forward_to_webhook_site(url: str, events: list, signature: str, timeout: int = 10) -> bool:
    try:
        res = requests.post(
            url,
            json={
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "events": events,
                "signature": signature,
            },
            timeout=timeout,
        )
    except requests.exceptions.RequestException as exc:
        logger.warning("Failed to mirror webhook to webhook.site: %s", exc)
        return False
    logger.info("webhook.site received mirror: %s", res.status_code)
    return res.ok


def webhook_site_token(url: str) -> str:
    return url.rstrip("/").split("/")[-1] if url else ""


def fetch_webhook_site_requests(url: str, timeout: int = 10) -> requests.Response:
    """GET the mirrored requests, newest first. Raises RequestException."""
    return requests.get(
        WEBHOOK_SITE_API.format(token=webhook_site_token(url)),
        params={"sorting": "-created_at"},
        headers={"Accept": "application/json"},
        timeout=timeout,
    )


# ---------------------------------------------------------------------------
# FLEX MESSAGES
# ---------------------------------------------------------------------------

def _truncate(text: str, limit: int = 300) -> str:
    return text[: limit - 3] + "..." if len(text) > limit else text


def _info_row(icon: str, label: str, value: str) -> dict:
    return {
        "type": "box", "layout": "horizontal", "spacing": "sm",
        "contents": [
            {
                "type": "box", "layout": "horizontal", "flex": 2,
                "contents": [
                    {"type": "text", "text": icon, "color": "#94a3b8", "size": "sm", "flex": 0},
                    {"type": "text", "text": label, "color": "#475569", "size": "xs",
                     "weight": "bold", "flex": 1, "margin": "sm"},
                ],
            },
            {"type": "text", "text": value, "color": "#1e293b", "size": "sm",
             "wrap": True, "flex": 3, "align": "end"},
        ],
    }


def status_url(app_url: str, job_id: str) -> str:
    return f"{app_url.rstrip('/')}/status/?jobId={quote(job_id, safe='')}"


def repair_summary_text(repair) -> str:
    return (
        "🛠️ แจ้งซ่อมจากระบบออนไลน์\n\n"
        f"👤 ผู้แจ้ง: {repair.full_name or '-'}\n"
        f"🏢 แผนก: {repair.dept_name or '-'} ({repair.location})\n"
        f"💻 อุปกรณ์: {repair.device or '-'} ({repair.device_id or '-'})\n"
        f"📞 ติดต่อ: {repair.phone or '-'}\n"
        f"📝 อาการ: {repair.issue or '-'}\n"
        f"📌 หมายเหตุ: {repair.notes or '-'}\n"
        f"🆔 Job ID: {repair.job_id}"
    )


def build_repair_flex(repair, app_url: str) -> dict:
    """New-job bubble sent to the technicians' LINE account."""
    separator = {"type": "separator", "margin": "md", "color": "#f3f4f6"}
    rows = [
        _info_row("👤", "ผู้แจ้ง", repair.full_name or "-"),
        _info_row("🏢", "แผนก", repair.dept_name or "-"),
        _info_row("📍", "สถานที่", repair.location),
        _info_row("💻", "อุปกรณ์ที่เสีย", repair.device or "-"),
        _info_row("🔢", "หมายเลขเครื่อง", repair.device_id or "-"),
        _info_row("📞", "เบอร์ติดต่อ", repair.phone or "-"),
    ]
    info_contents = []
    for row in rows:
        if info_contents:
            info_contents.append(separator)
        info_contents.append(row)

    bubble = {
        "type": "bubble",
        "body": {
            "type": "box", "layout": "vertical", "paddingAll": "0px",
            "contents": [
                {
                    "type": "box", "layout": "horizontal", "backgroundColor": "#7c3aed", "paddingAll": "14px",
                    "contents": [
                        {"type": "text", "text": "🏥", "color": "#ffffff", "size": "md", "flex": 0},
                        {"type": "text", "text": f"{HOSPITAL_NAME}\n🛠️ แจ้งซ่อมใหม่", "weight": "bold",
                         "color": "#ffffff", "size": "sm", "wrap": True, "margin": "md"},
                    ],
                },
                {
                    "type": "box", "layout": "vertical", "paddingAll": "14px", "spacing": "sm",
                    "contents": [
                        {"type": "text", "text": "🆔 Job ID", "weight": "bold", "color": "#7c3aed", "size": "sm"},
                        {"type": "text", "text": repair.job_id, "color": "#333333", "size": "md", "wrap": True},
                    ],
                },
                {"type": "separator", "margin": "none", "color": "#f3f4f6"},
                {"type": "box", "layout": "vertical", "paddingAll": "14px", "spacing": "lg",
                 "contents": info_contents},
                {
                    "type": "box", "layout": "vertical", "backgroundColor": "#fef3c7", "paddingAll": "14px",
                    "contents": [
                        {"type": "text", "text": "❗ อาการ / รายละเอียด", "weight": "bold", "color": "#b45309", "size": "sm"},
                        {"type": "text", "text": _truncate(repair.issue) if repair.issue else "-",
                         "color": "#78350f", "size": "sm", "wrap": True, "margin": "md"},
                    ],
                },
                {
                    "type": "box", "layout": "vertical", "backgroundColor": "#dbeafe", "paddingAll": "14px",
                    "contents": [
                        {"type": "text", "text": "📌 หมายเหตุ", "weight": "bold", "color": "#0c4a6e", "size": "sm"},
                        {"type": "text", "text": _truncate(repair.notes) if repair.notes else "(ไม่มี)",
                         "color": "#164e63", "size": "sm", "wrap": True, "margin": "md"},
                    ],
                },
            ],
        },
        "footer": {
            "type": "box", "layout": "vertical", "spacing": "sm",
            "backgroundColor": "#f1f5f9", "paddingAll": "12px",
            "contents": [
                {"type": "button", "style": "primary", "color": "#16a34a",
                 "action": {"type": "postback", "label": "✓ ยืนยันรับบริการ (Accept)",
                            "data": f"{APPROVE_PREFIX}{repair.job_id}"}},
                {"type": "button", "style": "secondary", "color": "#dc2626",
                 "action": {"type": "postback", "label": "✗ ไม่สามารถดำเนินการได้ (Reject)",
                            "data": f"{REJECT_PREFIX}{repair.job_id}"}},
                {"type": "button", "style": "link", "color": "#0369a1",
                 "action": {"type": "uri", "label": "🌐 ตรวจสอบสถานะการบริการ",
                            "uri": status_url(app_url, repair.job_id)}},
            ],
        },
    }
    return {"type": "flex", "altText": f"แจ้งซ่อม Job {repair.job_id}", "contents": bubble}
