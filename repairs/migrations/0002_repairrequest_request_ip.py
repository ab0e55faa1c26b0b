from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('repairs', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='repairrequest',
            name='request_ip',
            field=models.CharField(blank=True, max_length=64, null=True, verbose_name='IP ผู้แจ้ง'),
        ),
    ]
