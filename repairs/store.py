"""
repairs/store.py
================
Write paths for the repair_requests table.

The hosted table has drifted from the model more than once (columns added
in the ORM before the matching migration ran in production), so status
updates tolerate unknown columns: the offending column is parsed out of the
database error, dropped from the payload, and the update retried, up to
MAX_UPDATE_ATTEMPTS times. Every write is a plain last-write-wins UPDATE
of a single row; there is no locking and no version column.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import Q

from .models import RepairRequest

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 5

# PostgREST, PostgreSQL and SQLite phrasings of "that column is not there".
MISSING_COLUMN_PATTERNS = [
    re.compile(r"could not find the '([^']+)' column", re.IGNORECASE),
    re.compile(r'column "([^"]+)"(?: of relation "[^"]+")? does not exist', re.IGNORECASE),
    re.compile(r"no such column: (?:\w+\.)?(\w+)", re.IGNORECASE),
    re.compile(r"has no column named (\w+)", re.IGNORECASE),
]


class UpdateFailed(Exception):
    """An update that could not be completed, even after dropping columns."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


@dataclass
class UpdateResult:
    rows: list
    attempts: int
    dropped: list = field(default_factory=list)

    @property
    def matched(self) -> int:
        return len(self.rows)


def find_missing_column(message: str) -> Optional[str]:
    """Return the column named by an unknown-column error message, if any."""
    for pattern in MISSING_COLUMN_PATTERNS:
        match = pattern.search(message or "")
        if match:
            return match.group(1)
    return None


def _apply_update(key_field: str, key_value, fields: dict) -> int:
    with transaction.atomic():
        return RepairRequest.objects.filter(**{key_field: key_value}).update(**fields)


def update_with_column_fallback(key_field: str, key_value, payload: dict,
                                max_attempts: int = MAX_UPDATE_ATTEMPTS) -> UpdateResult:
    """
    UPDATE repair_requests SET <payload> WHERE <key_field> = <key_value>.

    Raises UpdateFailed when the error is not an unknown column that is part
    of the payload, or when max_attempts is exhausted.
    """
    fields = dict(payload)
    dropped = []
    attempt = 0

    while attempt < max_attempts:
        attempt += 1
        try:
            _apply_update(key_field, key_value, fields)
        except DatabaseError as exc:
            message = str(exc)
            logger.warning("Update attempt %d (%s=%s) failed: %s", attempt, key_field, key_value, message)

            column = find_missing_column(message)
            if column and column in fields:
                logger.warning("Column %r missing from repair_requests, dropping it and retrying", column)
                del fields[column]
                dropped.append(column)
                continue

            logger.error("Cannot recover from update error: %s", message)
            raise UpdateFailed(message, attempts=attempt) from exc

        logger.info("Update on %s=%s succeeded on attempt %d", key_field, key_value, attempt)
        columns = ["id", "job_id"] + [name for name in fields if name not in ("id", "job_id")]
        rows = list(RepairRequest.objects.filter(**{key_field: key_value}).values(*columns))
        return UpdateResult(rows=rows, attempts=attempt, dropped=dropped)

    raise UpdateFailed("Max retries exceeded", attempts=attempt)


def update_request(key: str, payload: dict) -> UpdateResult:
    """
    Update one request by its job_id. Dashboard rows created before job_id
    existed only carry the numeric row id, so a numeric key that fails or
    matches nothing by job_id is retried against id.
    """
    try:
        result = update_with_column_fallback("job_id", key, payload)
    except UpdateFailed:
        if not str(key).isdigit():
            raise
        logger.warning("Update by job_id failed, retrying by id=%s", key)
        return update_with_column_fallback("id", int(key), payload)

    if result.matched == 0 and str(key).isdigit():
        logger.info("No row with job_id=%s, retrying by id", key)
        return update_with_column_fallback("id", int(key), payload)
    return result


def delete_request(key: str) -> int:
    """Delete by row id or job_id; returns the number of rows removed."""
    condition = Q(job_id=key)
    if str(key).isdigit():
        condition |= Q(id=int(key))
    deleted, _ = RepairRequest.objects.filter(condition).delete()
    return deleted
