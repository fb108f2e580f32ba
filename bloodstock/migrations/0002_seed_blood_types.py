from django.db import migrations

DESCRIPTIONS = [
    ("A+", "A Positive"),
    ("A-", "A Negative"),
    ("B+", "B Positive"),
    ("B-", "B Negative"),
    ("AB+", "AB Positive (Universal Receiver)"),
    ("AB-", "AB Negative"),
    ("O+", "O Positive"),
    ("O-", "O Negative (Universal Donor)"),
]


def seed_blood_types(apps, schema_editor):
    BloodType = apps.get_model("bloodstock", "BloodType")
    for name, description in DESCRIPTIONS:
        BloodType.objects.get_or_create(name=name, defaults={"description": description})


class Migration(migrations.Migration):

    dependencies = [
        ("bloodstock", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_blood_types, migrations.RunPython.noop),
    ]
