from unittest import mock

from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from repairs import store
from repairs.models import RepairRequest, RepairStatus

from .helpers import make_repair


class FindMissingColumnTest(SimpleTestCase):
    def test_postgrest_message(self):
        message = "Could not find the 'receipt_no' column of 'repair_requests' in the schema cache"
        self.assertEqual(store.find_missing_column(message), "receipt_no")

    def test_postgres_message(self):
        message = 'column "reject_reason" of relation "repair_requests" does not exist'
        self.assertEqual(store.find_missing_column(message), "reject_reason")

    def test_sqlite_messages(self):
        self.assertEqual(store.find_missing_column("no such column: handler_tag"), "handler_tag")
        self.assertEqual(store.find_missing_column("table repair_requests has no column named notes"), "notes")

    def test_other_errors(self):
        self.assertIsNone(store.find_missing_column("connection refused"))
        self.assertIsNone(store.find_missing_column(""))


def failing_then_real(*errors):
    """side_effect raising each error in turn, then running the real update."""
    real_update = store._apply_update
    pending = list(errors)

    def side_effect(*args, **kwargs):
        if pending:
            raise pending.pop(0)
        return real_update(*args, **kwargs)

    return side_effect


class ColumnDriftRetryTest(TestCase):
    def setUp(self):
        self.repair = make_repair()

    def test_plain_update(self):
        result = store.update_with_column_fallback(
            "job_id", self.repair.job_id, {"status": RepairStatus.IN_PROGRESS},
        )

        self.assertEqual(result.attempts, 1)
        self.assertEqual(result.dropped, [])
        self.assertEqual(result.matched, 1)
        self.assertEqual(result.rows[0]["status"], RepairStatus.IN_PROGRESS)
        self.repair.refresh_from_db()
        self.assertEqual(self.repair.status, RepairStatus.IN_PROGRESS)

    def test_drops_missing_column_and_retries(self):
        drift = DatabaseError("Could not find the 'receipt_no' column of 'repair_requests' in the schema cache")
        with mock.patch.object(store, "_apply_update", side_effect=failing_then_real(drift)) as update:
            result = store.update_with_column_fallback("job_id", self.repair.job_id, {
                "status": RepairStatus.COMPLETED,
                "receipt_no": "R-1",
            })

        self.assertEqual(update.call_count, 2)
        self.assertEqual(update.call_args_list[1].args[2], {"status": RepairStatus.COMPLETED})
        self.assertEqual(result.attempts, 2)
        self.assertEqual(result.dropped, ["receipt_no"])
        self.assertNotIn("receipt_no", result.rows[0])
        self.repair.refresh_from_db()
        self.assertEqual(self.repair.status, RepairStatus.COMPLETED)
        self.assertIsNone(self.repair.receipt_no)

    def test_drops_several_columns(self):
        errors = [
            DatabaseError('column "receipt_no" of relation "repair_requests" does not exist'),
            DatabaseError("no such column: reject_reason"),
        ]
        with mock.patch.object(store, "_apply_update", side_effect=failing_then_real(*errors)):
            result = store.update_with_column_fallback("job_id", self.repair.job_id, {
                "status": RepairStatus.REJECTED,
                "receipt_no": "R-1",
                "reject_reason": "spare part unavailable",
            })

        self.assertEqual(result.attempts, 3)
        self.assertEqual(result.dropped, ["receipt_no", "reject_reason"])

    def test_gives_up_after_five_attempts(self):
        columns = ["a", "b", "c", "d", "e", "f"]
        errors = [DatabaseError(f"no such column: {c}") for c in columns]
        payload = {c: "x" for c in columns}

        with mock.patch.object(store, "_apply_update", side_effect=errors) as update:
            with self.assertRaises(store.UpdateFailed) as ctx:
                store.update_with_column_fallback("job_id", self.repair.job_id, payload)

        self.assertEqual(update.call_count, store.MAX_UPDATE_ATTEMPTS)
        self.assertEqual(ctx.exception.attempts, 5)
        self.assertEqual(str(ctx.exception), "Max retries exceeded")

    def test_other_errors_are_not_retried(self):
        with mock.patch.object(store, "_apply_update", side_effect=DatabaseError("connection refused")) as update:
            with self.assertRaises(store.UpdateFailed) as ctx:
                store.update_with_column_fallback("job_id", self.repair.job_id, {"status": "completed"})

        self.assertEqual(update.call_count, 1)
        self.assertEqual(ctx.exception.attempts, 1)
        self.assertIn("connection refused", str(ctx.exception))

    def test_missing_column_outside_payload_is_not_retried(self):
        error = DatabaseError("no such column: legacy_flag")
        with mock.patch.object(store, "_apply_update", side_effect=error) as update:
            with self.assertRaises(store.UpdateFailed):
                store.update_with_column_fallback("job_id", self.repair.job_id, {"status": "completed"})
        self.assertEqual(update.call_count, 1)

    def test_unknown_key_matches_nothing(self):
        result = store.update_with_column_fallback("job_id", "no-such-job", {"status": "completed"})
        self.assertEqual(result.matched, 0)


class UpdateRequestTest(TestCase):
    def setUp(self):
        self.repair = make_repair()

    def test_updates_by_job_id(self):
        result = store.update_request(self.repair.job_id, {"handler_tag": "ช่างวิทยา"})
        self.assertEqual(result.rows[0]["job_id"], self.repair.job_id)
        self.repair.refresh_from_db()
        self.assertEqual(self.repair.handler_tag, "ช่างวิทยา")

    def test_numeric_key_falls_back_to_row_id(self):
        result = store.update_request(str(self.repair.pk), {"status": RepairStatus.IN_PROGRESS})

        self.assertEqual(result.matched, 1)
        self.repair.refresh_from_db()
        self.assertEqual(self.repair.status, RepairStatus.IN_PROGRESS)

    def test_numeric_key_falls_back_after_unrecoverable_error(self):
        errors = [DatabaseError("connection reset")]
        with mock.patch.object(store, "_apply_update", side_effect=failing_then_real(*errors)) as update:
            result = store.update_request(str(self.repair.pk), {"status": RepairStatus.COMPLETED})

        self.assertEqual(update.call_args_list[0].args[0], "job_id")
        self.assertEqual(update.call_args_list[1].args[0], "id")
        self.assertEqual(result.matched, 1)

    def test_non_numeric_key_reraises(self):
        with mock.patch.object(store, "_apply_update", side_effect=DatabaseError("connection reset")):
            with self.assertRaises(store.UpdateFailed):
                store.update_request(self.repair.job_id, {"status": RepairStatus.COMPLETED})

    def test_last_write_wins(self):
        store.update_request(self.repair.job_id, {"status": RepairStatus.COMPLETED, "updated_at": timezone.now()})
        store.update_request(self.repair.job_id, {"status": RepairStatus.REJECTED, "updated_at": timezone.now()})
        self.repair.refresh_from_db()
        self.assertEqual(self.repair.status, RepairStatus.REJECTED)


class DeleteRequestTest(TestCase):
    def test_by_job_id(self):
        repair = make_repair()
        self.assertEqual(store.delete_request(repair.job_id), 1)
        self.assertFalse(RepairRequest.objects.exists())

    def test_by_row_id(self):
        repair = make_repair()
        other = make_repair(full_name="คนอื่น")
        self.assertEqual(store.delete_request(str(repair.pk)), 1)
        self.assertEqual(list(RepairRequest.objects.values_list("pk", flat=True)), [other.pk])

    def test_unknown_key(self):
        make_repair()
        self.assertEqual(store.delete_request("missing"), 0)
