"""
repairs/postbacks.py
====================
Maps LINE postback data from the Accept / Reject buttons to status changes.

    approve_job:<jobId>  ->  in-progress
    reject_job:<jobId>   ->  rejected

The technician's LINE user id is recorded as handler_id and handler_tag.
Used by the live webhook and by the webhook.site replay, which only moves
jobs that are still pending.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError
from django.utils import timezone

from .line import APPROVE_PREFIX, REJECT_PREFIX
from .models import RepairRequest, RepairStatus
from .store import UpdateFailed, update_with_column_fallback

logger = logging.getLogger(__name__)

POSTBACK_ACTIONS = {
    APPROVE_PREFIX: ("approve", RepairStatus.IN_PROGRESS),
    REJECT_PREFIX:  ("reject",  RepairStatus.REJECTED),
}


@dataclass
class PostbackOutcome:
    job_id: str
    action: str
    status: str
    applied: bool = False
    found: bool = True
    reason: str = ""


def parse_postback(data: str) -> Optional[tuple]:
    """Return (action, status, job_id) for a job button, else None."""
    for prefix, (action, status) in POSTBACK_ACTIONS.items():
        if data.startswith(prefix):
            job_id = data[len(prefix):].strip()
            if job_id:
                return action, status, job_id
    return None


def apply_postback(data: str, user_id: str, require_pending: bool = False) -> Optional[PostbackOutcome]:
    """
    Apply one postback. Returns None when the data is not a job button.
    Never raises for a missing job or a failed write; the outcome says so.
    """
    parsed = parse_postback(data or "")
    if parsed is None:
        return None
    action, status, job_id = parsed
    outcome = PostbackOutcome(job_id=job_id, action=action, status=status)

    # Reads status only; other columns may be missing from an older table.
    try:
        current = RepairRequest.objects.filter(job_id=job_id).values_list("status", flat=True).first()
    except DatabaseError as exc:
        logger.error("Looking up job %s failed: %s", job_id, exc)
        outcome.reason = str(exc)
        return outcome

    if current is None:
        logger.warning("Postback %s for unknown job %s", action, job_id)
        outcome.found = False
        outcome.reason = "Job not found"
        return outcome

    if require_pending and current != RepairStatus.PENDING:
        logger.info("Job %s already %s, skipping %s", job_id, current, action)
        outcome.reason = f"Already {current}"
        return outcome

    logger.info("Job %s: %s -> %s by %s", job_id, current, status, user_id)
    try:
        update_with_column_fallback("job_id", job_id, {
            "status": status,
            "handler_id": user_id,
            "handler_tag": user_id,
            "updated_at": timezone.now(),
        })
    except UpdateFailed as exc:
        outcome.reason = str(exc)
        return outcome

    outcome.applied = True
    return outcome
