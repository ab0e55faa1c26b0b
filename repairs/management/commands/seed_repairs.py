"""
repairs/management/commands/seed_repairs.py
===========================================
Populates the database with realistic sample repair requests for local
development of the dashboard and exports.

Usage:
    python manage.py seed_repairs          # add the samples
    python manage.py seed_repairs --reset  # wipe repair_requests first
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from repairs.models import RepairRequest, RepairStatus


SAMPLE_REPAIRS = [
    {
        "full_name": "สมชาย ใจดี", "dept_name": "อายุรกรรม", "dept_building": "อาคาร 1", "dept_floor": "3",
        "device": "คอมพิวเตอร์", "device_id": "NRH-PC-0142", "phone": "1234",
        "issue": "เปิดเครื่องไม่ติด กดปุ่มแล้วไม่มีไฟ",
        "status": RepairStatus.PENDING, "age_hours": 2,
    },
    {
        "full_name": "สุดา รักงาน", "dept_name": "ห้องฉุกเฉิน", "dept_building": "อาคาร 2", "dept_floor": "1",
        "device": "เครื่องพิมพ์", "device_id": "NRH-PR-0031", "phone": "2201",
        "issue": "พิมพ์ใบสั่งยาไม่ออก กระดาษติดบ่อย",
        "status": RepairStatus.IN_PROGRESS, "handler_tag": "ช่างวิทยา", "age_hours": 20,
    },
    {
        "full_name": "ประเสริฐ มั่นคง", "dept_name": "เภสัชกรรม", "dept_building": "อาคาร 1", "dept_floor": "1",
        "device": "เครื่องอ่านบาร์โค้ด", "device_id": "NRH-BC-0007", "phone": "1150",
        "issue": "สแกนบาร์โค้ดยาไม่ได้", "notes": "ใช้งานช่วงเช้าเป็นหลัก",
        "status": RepairStatus.COMPLETED, "handler_tag": "ช่างวิทยา", "receipt_no": "R-2569-0012",
        "age_hours": 72,
    },
    {
        "full_name": "มาลี ศรีสุข", "dept_name": "การเงิน", "dept_building": "อาคาร 3", "dept_floor": "2",
        "device": "จอภาพ", "device_id": "NRH-MN-0210", "phone": "3302",
        "issue": "จอมีเส้นแนวตั้งตลอดเวลา",
        "status": RepairStatus.REJECTED, "handler_tag": "ช่างสมศักดิ์",
        "reject_reason": "อุปกรณ์หมดประกัน ส่งเรื่องจัดซื้อใหม่", "age_hours": 120,
    },
]


class Command(BaseCommand):
    help = "Seed the database with sample repair requests for testing."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete all existing repair requests before seeding.",
        )

    def handle(self, *args, **options):
        if options["reset"]:
            deleted, _ = RepairRequest.objects.all().delete()
            self.stdout.write(self.style.WARNING(f"Cleared {deleted} existing repair requests."))

        now = timezone.now()
        created = 0

        for sample in SAMPLE_REPAIRS:
            fields = dict(sample)
            created_at = now - timedelta(hours=fields.pop("age_hours"))
            RepairRequest.objects.create(
                created_at=created_at,
                updated_at=created_at if fields["status"] == RepairStatus.PENDING else now,
                **fields,
            )
            created += 1

        self.stdout.write(self.style.SUCCESS(f"  Repair requests: {created} created."))
        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("── Seed complete ──"))
        self.stdout.write("  Dashboard: /admin/  (log in with ADMIN_USER / ADMIN_PASS)")
