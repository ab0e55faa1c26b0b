"""
repairs/models.py
=================
Database models:
  RepairStatus   — the four ticket states
  RepairRequest  — one IT repair request, stored in the repair_requests table

The table is shared with the hosted database the hospital already runs, so
db_table is pinned and the business identifier (job_id) is what every
outside party (LINE postbacks, status links, the dashboard) refers to.
"""

import uuid

from django.db import models
from django.utils import timezone


# ---------------------------------------------------------------------------
# STATUS
# ---------------------------------------------------------------------------

class RepairStatus(models.TextChoices):
    PENDING     = "pending",     "รอรับงาน"
    IN_PROGRESS = "in-progress", "กำลังดำเนินการ"
    COMPLETED   = "completed",   "เสร็จสิ้น"
    REJECTED    = "rejected",    "ถูกปฏิเสธ"


def new_job_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# REPAIR REQUEST MODEL
# ---------------------------------------------------------------------------

class RepairRequest(models.Model):
    """
    A single repair request submitted from the public form.
    handler_id / handler_tag hold the LINE user id of the technician who
    answered the postback, or the name typed in by an administrator.
    """

    job_id        = models.CharField("Job ID", max_length=64, unique=True,
                                     default=new_job_id, editable=False)

    # Requester
    full_name     = models.CharField("ชื่อผู้แจ้ง", max_length=120)
    dept_name     = models.CharField("แผนก",   max_length=120, blank=True)
    dept_building = models.CharField("อาคาร",  max_length=80,  blank=True)
    dept_floor    = models.CharField("ชั้น",    max_length=20,  blank=True)
    phone         = models.CharField("เบอร์โทรศัพท์", max_length=30, blank=True)
    request_ip    = models.CharField("IP ผู้แจ้ง", max_length=64, blank=True, null=True)

    # Device & problem
    device        = models.CharField("ชนิดอุปกรณ์", max_length=80)
    device_id     = models.CharField("หมายเลขเครื่อง", max_length=80)
    issue         = models.TextField("ปัญหา / อาการ")
    notes         = models.TextField("หมายเหตุ", blank=True)

    # Workflow
    status        = models.CharField(max_length=20, choices=RepairStatus.choices,
                                     default=RepairStatus.PENDING)
    receipt_no    = models.CharField("เลขเครื่องที่เสร็จ", max_length=60, blank=True, null=True)
    reject_reason = models.TextField("เหตุผลการปฏิเสธ", blank=True, null=True)
    handler_id    = models.CharField("Handler ID",  max_length=80, blank=True)
    handler_tag   = models.CharField("ผู้ดำเนินการ", max_length=120, blank=True)

    # Timestamps are written explicitly; queryset.update() skips auto_now.
    created_at    = models.DateTimeField(default=timezone.now)
    updated_at    = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "repair_requests"
        ordering = ["-created_at"]
        verbose_name = "Repair Request"
        verbose_name_plural = "Repair Requests"

    def __str__(self):
        return f"{self.job_id} — {self.device} ({self.full_name})"

    # ── Template convenience properties ──────────────────────────────────

    @property
    def status_label(self) -> str:
        try:
            return RepairStatus(self.status).label
        except ValueError:
            return self.status

    @property
    def status_badge_class(self) -> str:
        return {
            RepairStatus.PENDING:     "bs-pending",
            RepairStatus.IN_PROGRESS: "bs-prog",
            RepairStatus.COMPLETED:   "bs-done",
            RepairStatus.REJECTED:    "bs-rej",
        }.get(self.status, "")

    @property
    def location(self) -> str:
        return f"{self.dept_building or '-'} ชั้น {self.dept_floor or '-'}"

    @property
    def handler(self) -> str:
        return self.handler_tag or self.handler_id or ""

    def as_dashboard_row(self) -> dict:
        """Row shape served by GET /api/reports, with display defaults."""
        created = self.created_at or timezone.now()
        return {
            "id":            str(self.pk or ""),
            "job_id":        self.job_id or "",
            "name":          self.full_name or "-",
            "phone":         self.phone or "-",
            "device":        self.device or "-",
            "device_id":     self.device_id or "-",
            "issue":         self.issue or "-",
            "status":        self.status or RepairStatus.PENDING,
            "dept_name":     self.dept_name or "-",
            "dept_building": self.dept_building or "-",
            "dept_floor":    self.dept_floor or "-",
            "handler_id":    self.handler_id or "-",
            "handler_tag":   self.handler_tag or "-",
            "notes":         self.notes or "-",
            "receipt_no":    self.receipt_no or None,
            "reject_reason": self.reject_reason or None,
            "created_at":    created.isoformat(),
            "updated_at":    (self.updated_at or created).isoformat(),
        }
