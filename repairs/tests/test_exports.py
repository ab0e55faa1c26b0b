import csv
import io
from datetime import datetime, timezone as dt_timezone

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings

from repairs import exports
from repairs.checks import check_environment
from repairs.models import RepairRequest, RepairStatus

from .helpers import configured_env, make_repair


class ThaiDateTest(SimpleTestCase):
    def test_buddhist_short_year_in_bangkok_time(self):
        value = datetime(2026, 10, 19, 7, 5, tzinfo=dt_timezone.utc)
        self.assertEqual(exports.thai_short_datetime(value), "19/10/69 14:05")

    def test_day_and_month_are_not_padded(self):
        value = datetime(2026, 1, 2, 3, 4, tzinfo=dt_timezone.utc)
        self.assertEqual(exports.thai_short_datetime(value), "2/1/69 10:04")

    def test_empty(self):
        self.assertEqual(exports.thai_short_datetime(None), "")


class CsvExportTest(TestCase):
    def test_rows_follow_header_order(self):
        repair = make_repair(status=RepairStatus.COMPLETED, receipt_no="R-1", handler_tag="ช่างวิทยา")

        response = exports.export_csv(RepairRequest.objects.all())

        text = response.content.decode("utf-8")
        self.assertTrue(text.startswith("\ufeff"))
        header, row = list(csv.reader(io.StringIO(text.lstrip("\ufeff"))))
        self.assertEqual(header, [label for _, label in exports.EXPORT_COLUMNS])
        self.assertEqual(row[0], repair.job_id)
        self.assertEqual(row[1], str(repair.pk))
        self.assertEqual(row[11], "completed")
        self.assertEqual(row[12], "R-1")
        self.assertEqual(row[16], "ช่างวิทยา")

    def test_filename(self):
        response = exports.export_csv([])
        self.assertRegex(response["Content-Disposition"], r'^attachment; filename="repair_reports_\d+\.csv"$')


class XlsxExportTest(TestCase):
    def test_workbook_layout(self):
        from openpyxl import load_workbook

        make_repair(status=RepairStatus.REJECTED, reject_reason="หมดประกัน")
        response = exports.export_xlsx(RepairRequest.objects.all())

        ws = load_workbook(io.BytesIO(response.content)).active
        self.assertEqual(ws.cell(row=2, column=1).value, "Job ID")
        self.assertEqual(ws.cell(row=3, column=3).value, "สมชาย ใจดี")
        self.assertEqual(ws.cell(row=3, column=14).value, "หมดประกัน")
        self.assertEqual(ws.freeze_panes, "A3")


class PdfExportTest(TestCase):
    def test_renders_document(self):
        make_repair()
        response = exports.export_pdf(RepairRequest.objects.all())

        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))


class EnvironmentCheckTest(SimpleTestCase):
    @configured_env
    def test_configured(self):
        self.assertEqual(check_environment(None), [])

    @override_settings(ADMIN_COOKIE_SECRET="", LINE_USER_ID="")
    def test_reports_missing_settings(self):
        ids = [warning.id for warning in check_environment(None)]
        self.assertIn("repairs.W003", ids)
        self.assertIn("repairs.W006", ids)


class SeedCommandTest(TestCase):
    def test_seed_and_reset(self):
        out = io.StringIO()
        call_command("seed_repairs", stdout=out)
        call_command("seed_repairs", "--reset", stdout=out)

        self.assertEqual(RepairRequest.objects.count(), 4)
        self.assertEqual(
            set(RepairRequest.objects.values_list("status", flat=True)),
            set(RepairStatus.values),
        )
        self.assertIn("Seed complete", out.getvalue())
