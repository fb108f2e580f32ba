import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

BLOOD_TYPE_CHOICES = [
    ('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'),
    ('AB+', 'AB+'), ('AB-', 'AB-'), ('O+', 'O+'), ('O-', 'O-'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('actor', models.CharField(blank=True, max_length=150, verbose_name='Actor')),
                ('action', models.CharField(max_length=50, verbose_name='Action')),
                ('details', models.JSONField(blank=True, default=dict, verbose_name='Details')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='BloodType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(choices=BLOOD_TYPE_CHOICES, max_length=3, unique=True, verbose_name='Type')),
                ('description', models.CharField(blank=True, max_length=200, verbose_name='Description')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Donor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('national_id', models.CharField(db_index=True, max_length=9, unique=True, verbose_name='National ID')),
                ('full_name', models.CharField(max_length=120, verbose_name='Full name')),
                ('date_of_birth', models.DateField(blank=True, null=True, verbose_name='Date of birth')),
                ('last_donation_date', models.DateTimeField(blank=True, null=True, verbose_name='Last donation')),
                ('is_available', models.BooleanField(default=True, verbose_name='Available')),
                ('blood_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donors', to='bloodstock.bloodtype')),
            ],
            options={
                'ordering': ['full_name'],
            },
        ),
        migrations.CreateModel(
            name='Donation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_ml', models.PositiveIntegerField(verbose_name='Quantity (ml)')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('COMPLETED', 'Completed')], db_index=True, default='PENDING', max_length=20, verbose_name='Status')),
                ('donation_date', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Donation time')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('approved_at', models.DateTimeField(blank=True, null=True, verbose_name='Approved at')),
                ('completed_at', models.DateTimeField(blank=True, null=True, verbose_name='Completed at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='donations', to='bloodstock.donor')),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity_ml__gte', 1), ('quantity_ml__lte', 1000)), name='donation_quantity_range')],
            },
        ),
        migrations.CreateModel(
            name='BloodRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('hospital_name', models.CharField(max_length=200, verbose_name='Hospital name')),
                ('hospital_city', models.CharField(blank=True, max_length=80, verbose_name='Hospital city')),
                ('quantity_ml', models.PositiveIntegerField(verbose_name='Quantity (ml)')),
                ('is_emergency', models.BooleanField(default=False, verbose_name='Emergency')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('FULFILLED', 'Fulfilled')], db_index=True, default='PENDING', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('admin_notes', models.TextField(blank=True, verbose_name='Admin notes')),
                ('approved_at', models.DateTimeField(blank=True, null=True, verbose_name='Approved at')),
                ('fulfilled_at', models.DateTimeField(blank=True, null=True, verbose_name='Fulfilled at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('blood_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='requests', to='bloodstock.bloodtype')),
                ('fulfilled_with', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='fulfilled_requests', to='bloodstock.bloodtype')),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity_ml__gte', 1), ('quantity_ml__lte', 10000)), name='request_quantity_range')],
            },
        ),
        migrations.CreateModel(
            name='LedgerEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('COLLECTED', 'Collected'), ('ISSUED', 'Issued')], db_index=True, max_length=10, verbose_name='Kind')),
                ('quantity_ml', models.PositiveIntegerField(verbose_name='Quantity (ml)')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Created at')),
                ('blood_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_events', to='bloodstock.bloodtype')),
                ('donation', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_event', to='bloodstock.donation')),
                ('blood_request', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_event', to='bloodstock.bloodrequest')),
            ],
            options={
                'ordering': ['created_at', 'id'],
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity_ml__gt', 0)), name='ledger_quantity_positive')],
            },
        ),
    ]
