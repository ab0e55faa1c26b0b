"""
repairs/views.py
================
Django views for the repair desk.

Pages
  repair_form      — public submission form
  status_page      — public job lookup (?jobId=)
  admin_login_page — login form (posts to the JSON login API)
  admin_dashboard  — protected queue with status filter and counts

JSON API
  /api/admin/login, /api/admin/logout
  /api/submit, /api/reports (GET / POST / DELETE), /api/export, /api/whoami
  /api/webhook-logs, /api/sync-webhook-events
  /api/line/interactions — LINE Messaging API webhook
"""

import json
import logging

import requests
from django.conf import settings
from django.db import DatabaseError
from django.http import HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import exports, store
from .auth import (
    admin_configured,
    admin_required,
    check_credentials,
    clear_admin_cookie,
    get_admin_user,
    set_admin_cookie,
)
from .forms import RepairSubmitForm
from .line import (
    LineClient,
    build_repair_flex,
    fetch_webhook_site_requests,
    forward_to_webhook_site,
    repair_summary_text,
    send_notify,
    verify_signature,
    webhook_site_token,
)
from .models import RepairRequest, RepairStatus
from .postbacks import apply_postback

logger = logging.getLogger(__name__)

# Checked in order; the first header present wins.
CLIENT_IP_HEADERS = [
    "HTTP_X_INTERNAL_IP",
    "HTTP_X_REMOTE_IP",
    "HTTP_X_REAL_IP",
    "HTTP_X_FORWARDED_FOR",
    "HTTP_X_CLUSTER_CLIENT_IP",
    "HTTP_CF_CONNECTING_IP",
    "HTTP_TRUE_CLIENT_IP",
]


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------

class BadRequest(ValueError):
    pass


def _json_body(request) -> dict:
    try:
        body = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        raise BadRequest("Invalid JSON in request body")
    if not isinstance(body, dict):
        raise BadRequest("Invalid JSON in request body")
    return body


def client_ip(request) -> str:
    ip = ""
    for header in CLIENT_IP_HEADERS:
        value = request.META.get(header)
        if value:
            ip = value.split(",")[0].strip()
            break
    ip = ip or request.META.get("REMOTE_ADDR", "") or "unknown"
    if ip.lower().startswith("::ffff:"):
        ip = ip[len("::ffff:"):]
    return ip


def _line_client() -> LineClient:
    return LineClient(settings.LINE_CHANNEL_ACCESS_TOKEN, timeout=settings.LINE_API_TIMEOUT)


def _line_configured() -> bool:
    return bool(settings.LINE_CHANNEL_ACCESS_TOKEN and settings.LINE_USER_ID)


def _create_and_notify(form: RepairSubmitForm, ip: str) -> dict:
    """
    Save a validated submission and announce it on LINE.
    Raises DatabaseError if the row could not be written.
    """
    repair = form.save(commit=False)
    repair.request_ip = ip
    repair.status = RepairStatus.PENDING
    repair.created_at = repair.updated_at = timezone.now()
    repair.save()
    logger.info("Saved repair request %s from %s (%s)", repair.job_id, repair.full_name, ip)

    push_sent = _line_client().push(
        settings.LINE_USER_ID,
        [build_repair_flex(repair, settings.APP_URL)],
    )

    notify_sent = False
    if not push_sent and settings.LINE_NOTIFY_TOKEN:
        notify_sent = send_notify(
            settings.LINE_NOTIFY_TOKEN,
            repair_summary_text(repair),
            timeout=settings.LINE_API_TIMEOUT,
        )

    return {
        "ok": True,
        "jobId": repair.job_id,
        "dbSaved": True,
        "pushSent": push_sent,
        "notifySent": notify_sent,
    }


# ---------------------------------------------------------------------------
# PUBLIC PAGES
# ---------------------------------------------------------------------------

def repair_form(request):
    """
    GET  — show the repair form.
    POST — validate, save, notify LINE, redirect to the status page.
    """
    error = ""
    if request.method == "POST":
        form = RepairSubmitForm(request.POST)
        if not _line_configured():
            error = "Missing LINE env"
        elif form.is_valid():
            result = _create_and_notify(form, client_ip(request))
            return redirect(f"/status/?jobId={result['jobId']}")
    else:
        form = RepairSubmitForm()

    return render(request, "repairs/repair_form.html", {"form": form, "error": error})


@require_GET
def status_page(request):
    job_id = request.GET.get("jobId", "").strip()
    repair = RepairRequest.objects.filter(job_id=job_id).first() if job_id else None
    return render(request, "repairs/status.html", {"job_id": job_id, "repair": repair})


# ---------------------------------------------------------------------------
# ADMIN PAGES
# ---------------------------------------------------------------------------

def admin_login_page(request):
    if get_admin_user(request):
        return redirect("admin_dashboard")
    return render(request, "repairs/admin_login.html")


@admin_required
def admin_dashboard(request):
    repairs = RepairRequest.objects.all()

    status_filter = request.GET.get("status", "")
    if status_filter:
        repairs = repairs.filter(status=status_filter)

    all_repairs = RepairRequest.objects.all()
    stats = {
        "total":       all_repairs.count(),
        "pending":     all_repairs.filter(status=RepairStatus.PENDING).count(),
        "in_progress": all_repairs.filter(status=RepairStatus.IN_PROGRESS).count(),
        "completed":   all_repairs.filter(status=RepairStatus.COMPLETED).count(),
        "rejected":    all_repairs.filter(status=RepairStatus.REJECTED).count(),
    }

    return render(request, "repairs/admin_dashboard.html", {
        "repairs":        repairs,
        "stats":          stats,
        "status_filter":  status_filter,
        "status_choices": [("", "ทุกสถานะ")] + list(RepairStatus.choices),
        "admin_user":     request.admin_user,
    })


# ---------------------------------------------------------------------------
# ADMIN AUTH API
# ---------------------------------------------------------------------------

@csrf_exempt
@require_POST
def api_admin_login(request):
    try:
        body = _json_body(request)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    username = str(body.get("username") or "").strip()
    password = str(body.get("password") or "").strip()

    if not admin_configured():
        logger.error("Admin login attempted but ADMIN_USER / ADMIN_PASS / ADMIN_COOKIE_SECRET unset")
        return JsonResponse({"error": "Server not configured"}, status=500)

    if not check_credentials(username, password):
        logger.warning("Admin login failed for %r", username)
        return JsonResponse({"error": "Invalid credentials"}, status=401)

    logger.info("Admin %s logged in", username)
    return set_admin_cookie(JsonResponse({"ok": True}), username)


@csrf_exempt
@require_POST
def api_admin_logout(request):
    return clear_admin_cookie(JsonResponse({"ok": True}))


# ---------------------------------------------------------------------------
# SUBMIT
# ---------------------------------------------------------------------------

@csrf_exempt
@require_POST
def api_submit(request):
    try:
        body = _json_body(request)
    except BadRequest as exc:
        return JsonResponse({"ok": False, "error": str(exc)}, status=400)

    form = RepairSubmitForm.from_payload(body)
    if not form.is_valid():
        return JsonResponse({"ok": False, "error": form.first_error()}, status=400)

    if not _line_configured():
        return JsonResponse({"ok": False, "error": "Missing LINE env"}, status=500)

    try:
        result = _create_and_notify(form, client_ip(request))
    except DatabaseError as exc:
        logger.error("Insert into repair_requests failed: %s", exc)
        return JsonResponse({"ok": False, "error": f"Database error: {exc}"}, status=500)

    return JsonResponse(result)


# ---------------------------------------------------------------------------
# REPORTS
# ---------------------------------------------------------------------------

@csrf_exempt
@require_http_methods(["GET", "POST", "DELETE"])
def api_reports(request):
    if request.method == "POST":
        return _update_report(request)
    if request.method == "DELETE":
        return _delete_report(request)

    try:
        rows = [repair.as_dashboard_row() for repair in RepairRequest.objects.order_by("-created_at")]
    except DatabaseError as exc:
        logger.error("Listing repair_requests failed: %s", exc)
        return JsonResponse({"error": f"Database error: {exc}"}, status=500)

    logger.info("Fetched %d repair requests", len(rows))
    response = JsonResponse(rows, safe=False)
    response["Cache-Control"] = "no-store, max-age=0"
    return response


# Request key -> column, added to the update only when non-empty.
OPTIONAL_UPDATE_FIELDS = [
    ("receiptNo",   "receipt_no"),
    ("reason",      "reject_reason"),
    ("handlerName", "handler_tag"),
    ("name",        "full_name"),
    ("phone",       "phone"),
    ("device",      "device"),
    ("notes",       "notes"),
]


@admin_required(api=True)
def _update_report(request):
    try:
        body = _json_body(request)
    except BadRequest as exc:
        return JsonResponse({"ok": False, "error": str(exc)}, status=400)

    job_id = str(body.get("jobId") or "").strip()
    if not job_id:
        return JsonResponse({"ok": False, "error": "jobId required"}, status=400)

    new_status = body.get("status") or RepairStatus.PENDING
    if new_status not in RepairStatus.values:
        return JsonResponse({"ok": False, "error": f"Unknown status: {new_status}"}, status=400)

    now = timezone.now()
    payload = {"status": new_status, "updated_at": now}
    for key, column in OPTIONAL_UPDATE_FIELDS:
        if body.get(key):
            payload[column] = body[key]

    try:
        result = store.update_request(job_id, payload)
    except store.UpdateFailed as exc:
        return JsonResponse({"ok": False, "error": str(exc)}, status=500)

    if new_status == RepairStatus.REJECTED and body.get("reason"):
        logger.info("Job %s rejected: %s", job_id, body["reason"])

    return JsonResponse({
        "ok": True,
        "updated": result.rows,
        "status": new_status,
        "jobId": job_id,
        "completedAt": now.isoformat(),
        "notificationSent": new_status == RepairStatus.COMPLETED,
    })


@admin_required(api=True)
def _delete_report(request):
    try:
        body = _json_body(request)
    except BadRequest as exc:
        return JsonResponse({"ok": False, "error": str(exc)}, status=400)

    key = str(body.get("id") or body.get("jobId") or "").strip()
    if not key:
        return JsonResponse({"ok": False, "error": "jobId or id required"}, status=400)

    try:
        deleted = store.delete_request(key)
    except DatabaseError as exc:
        logger.error("Delete of %s failed: %s", key, exc)
        return JsonResponse({"ok": False, "error": str(exc)}, status=500)

    if not deleted:
        return JsonResponse({"ok": False, "error": "Record not found"}, status=404)

    logger.info("Deleted repair request %s", key)
    return JsonResponse({"ok": True, "message": "Record deleted"})


# ---------------------------------------------------------------------------
# EXPORT
# ---------------------------------------------------------------------------

@require_GET
@admin_required(api=True)
def api_export(request):
    export_format = request.GET.get("format", "csv")
    if export_format not in exports.EXPORT_FORMATS:
        return JsonResponse({"error": "Invalid format"}, status=400)

    repairs = RepairRequest.objects.order_by("-created_at")
    status = request.GET.get("status")
    if status and status != "all":
        repairs = repairs.filter(status=status)

    if export_format == "json":
        return JsonResponse(list(repairs.values()), safe=False)
    if export_format == "xlsx":
        return exports.export_xlsx(repairs)
    if export_format == "pdf":
        return exports.export_pdf(repairs)
    return exports.export_csv(repairs)


@require_GET
def api_whoami(request):
    return JsonResponse({"ip": client_ip(request)})


# ---------------------------------------------------------------------------
# WEBHOOK.SITE MIRROR
# ---------------------------------------------------------------------------

def _mirrored_requests(data) -> list:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("data", "requests"):
            if isinstance(data.get(key), list):
                return data[key]
        return [data]
    return []


def _parse_mirrored_body(raw):
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _load_mirror():
    """
    (requests, None) on success, (None, JsonResponse) on failure.
    """
    if not settings.WEBHOOK_SITE_URL or not webhook_site_token(settings.WEBHOOK_SITE_URL):
        return None, JsonResponse({"error": "WEBHOOK_SITE_URL not configured"}, status=400)

    try:
        res = fetch_webhook_site_requests(settings.WEBHOOK_SITE_URL, timeout=settings.LINE_API_TIMEOUT)
    except requests.exceptions.RequestException as exc:
        logger.error("Fetching webhook.site requests failed: %s", exc)
        return None, JsonResponse({"error": "Failed to fetch webhook logs", "details": str(exc)}, status=502)

    if not res.ok:
        logger.error("webhook.site answered %s", res.status_code)
        return None, JsonResponse(
            {"error": f"Failed to fetch webhook logs ({res.status_code})", "details": res.text[:500]},
            status=res.status_code,
        )

    try:
        data = res.json()
    except ValueError:
        return None, JsonResponse(
            {"error": "Invalid JSON response from webhook.site", "rawResponse": res.text[:500]},
            status=500,
        )
    return _mirrored_requests(data), None


@require_GET
@admin_required(api=True)
def api_webhook_logs(request):
    mirrored, error = _load_mirror()
    if error is not None:
        return error

    formatted = [{
        "id":         item.get("uuid"),
        "timestamp":  item.get("created_at"),
        "method":     item.get("method"),
        "url":        item.get("url"),
        "body":       _parse_mirrored_body(item.get("content") or item.get("body")),
        "headers":    item.get("headers"),
        "statusCode": item.get("status_code"),
        "query":      item.get("query"),
    } for item in mirrored]

    return JsonResponse({
        "success":   True,
        "count":     len(formatted),
        "webhookId": webhook_site_token(settings.WEBHOOK_SITE_URL),
        "requests":  formatted,
    })


@csrf_exempt
@require_POST
@admin_required(api=True)
def api_sync_webhook_events(request):
    """Replay mirrored postbacks; only jobs still pending are moved."""
    mirrored, error = _load_mirror()
    if error is not None:
        return error

    processed = 0
    updates, skipped = [], []

    for item in mirrored:
        event_id = item.get("uuid") or item.get("id")
        body = _parse_mirrored_body(item.get("content") or item.get("body") or item.get("raw_body"))
        if not event_id or not isinstance(body, dict):
            logger.warning("Skipping mirrored request %s without a usable body", event_id)
            continue

        for event in body.get("events") or []:
            if event.get("type") != "postback":
                continue
            outcome = apply_postback(
                (event.get("postback") or {}).get("data", ""),
                (event.get("source") or {}).get("userId", ""),
                require_pending=True,
            )
            if outcome is None:
                continue
            if outcome.applied:
                processed += 1
                updates.append({"jobId": outcome.job_id, "action": outcome.action, "status": outcome.status})
            else:
                skipped.append({"jobId": outcome.job_id, "reason": outcome.reason})

    logger.info("Webhook sync: %d updated, %d skipped", processed, len(skipped))
    return JsonResponse({
        "success":   True,
        "processed": processed,
        "skipped":   skipped,
        "updates":   updates,
        "message":   f"Processed {processed} webhook events, skipped {len(skipped)}",
    })


# ---------------------------------------------------------------------------
# LINE WEBHOOK
# ---------------------------------------------------------------------------

REPLY_TEXT = {
    "approve": {
        "ok":     "รับงานหมายเลข {job_id} เรียบร้อยแล้ว ✔",
        "failed": "อัปเดตสถานะไม่สำเร็จ ❌ ({reason})",
        "push":   "✅ งาน {job_id} รับโดย {user_id}",
    },
    "reject": {
        "ok":     "ปฏิเสธงานหมายเลข {job_id} เรียบร้อยแล้ว",
        "failed": "ปฏิเสธงานไม่สำเร็จ ❌ ({reason})",
        "push":   "❌ งาน {job_id} ปฏิเสธโดย {user_id}",
    },
}
NOT_FOUND_TEXT = "ไม่พบงานหมายเลข {job_id}"


@csrf_exempt
@require_POST
def line_interactions(request):
    if not settings.LINE_CHANNEL_SECRET or not settings.LINE_CHANNEL_ACCESS_TOKEN:
        logger.error("LINE webhook called but channel secret / access token unset")
        return HttpResponse("Missing LINE env", status=500)

    signature = request.headers.get("X-Line-Signature", "")
    if not verify_signature(request.body, signature, settings.LINE_CHANNEL_SECRET):
        logger.warning("LINE webhook rejected: invalid signature")
        return HttpResponse("Invalid signature", status=401)

    try:
        events = _json_body(request).get("events") or []
    except BadRequest:
        return HttpResponse("Invalid JSON", status=400)

    try:
        _handle_line_events(events, signature)
    except Exception:
        logger.exception("LINE webhook failed")
        return HttpResponse("Internal error", status=500)

    return HttpResponse("OK", status=200)


def _handle_line_events(events, signature):
    """Mirror, apply and answer each postback; errors propagate to the caller."""
    logger.info("LINE webhook: %d events", len(events))

    if settings.WEBHOOK_SITE_URL:
        forward_to_webhook_site(settings.WEBHOOK_SITE_URL, events, signature,
                                timeout=settings.LINE_API_TIMEOUT)

    client = _line_client()
    for event in events:
        if event.get("type") != "postback":
            logger.info("Skipping non-postback event: %s", event.get("type"))
            continue

        data = (event.get("postback") or {}).get("data", "")
        user_id = (event.get("source") or {}).get("userId", "")
        reply_token = event.get("replyToken", "")

        outcome = apply_postback(data, user_id)
        if outcome is None:
            logger.info("Ignoring postback %r", data)
            continue

        texts = REPLY_TEXT[outcome.action]
        if not outcome.found:
            client.reply_text(reply_token, NOT_FOUND_TEXT.format(job_id=outcome.job_id))
        elif not outcome.applied:
            client.reply_text(reply_token, texts["failed"].format(reason=outcome.reason))
        else:
            client.reply_text(reply_token, texts["ok"].format(job_id=outcome.job_id))
            if settings.LINE_USER_ID:
                client.push_text(settings.LINE_USER_ID,
                                 texts["push"].format(job_id=outcome.job_id, user_id=user_id))

