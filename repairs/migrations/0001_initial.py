import django.utils.timezone
from django.db import migrations, models

import repairs.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='RepairRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True,
                                           serialize=False, verbose_name='ID')),
                ('job_id', models.CharField(default=repairs.models.new_job_id, editable=False,
                                            max_length=64, unique=True, verbose_name='Job ID')),
                ('full_name',     models.CharField(max_length=120, verbose_name='ชื่อผู้แจ้ง')),
                ('dept_name',     models.CharField(blank=True, max_length=120, verbose_name='แผนก')),
                ('dept_building', models.CharField(blank=True, max_length=80, verbose_name='อาคาร')),
                ('dept_floor',    models.CharField(blank=True, max_length=20, verbose_name='ชั้น')),
                ('phone',         models.CharField(blank=True, max_length=30, verbose_name='เบอร์โทรศัพท์')),
                ('device',        models.CharField(max_length=80, verbose_name='ชนิดอุปกรณ์')),
                ('device_id',     models.CharField(max_length=80, verbose_name='หมายเลขเครื่อง')),
                ('issue',         models.TextField(verbose_name='ปัญหา / อาการ')),
                ('notes',         models.TextField(blank=True, verbose_name='หมายเหตุ')),
                ('status', models.CharField(
                    choices=[
                        ('pending', 'รอรับงาน'),
                        ('in-progress', 'กำลังดำเนินการ'),
                        ('completed', 'เสร็จสิ้น'),
                        ('rejected', 'ถูกปฏิเสธ'),
                    ],
                    default='pending', max_length=20,
                )),
                ('receipt_no',    models.CharField(blank=True, max_length=60, null=True,
                                                   verbose_name='เลขเครื่องที่เสร็จ')),
                ('reject_reason', models.TextField(blank=True, null=True, verbose_name='เหตุผลการปฏิเสธ')),
                ('handler_id',    models.CharField(blank=True, max_length=80, verbose_name='Handler ID')),
                ('handler_tag',   models.CharField(blank=True, max_length=120, verbose_name='ผู้ดำเนินการ')),
                ('created_at',    models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at',    models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Repair Request',
                'verbose_name_plural': 'Repair Requests',
                'db_table': 'repair_requests',
                'ordering': ['-created_at'],
            },
        ),
    ]
