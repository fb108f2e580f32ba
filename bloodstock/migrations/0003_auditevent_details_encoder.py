import bloodstock.models
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bloodstock", "0002_seed_blood_types"),
    ]

    operations = [
        migrations.AlterField(
            model_name="auditevent",
            name="details",
            field=models.JSONField(
                blank=True, default=dict, encoder=bloodstock.models.AuditJSONEncoder, verbose_name="Details",
            ),
        ),
    ]
