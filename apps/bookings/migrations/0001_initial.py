import uuid
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('businesses', '0001_initial'),
        ('services', '0001_initial'),
        ('staff', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('client_name', models.CharField(blank=True, max_length=120)),
                ('booking_date', models.DateField(blank=True, db_index=True, null=True)),
                ('scheduled_for', models.DateTimeField(blank=True, null=True)),
                ('duration', models.PositiveIntegerField(help_text='Booked duration in minutes (slots_used x 30 once slotted)')),
                ('start_slot', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('end_slot', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('slots_used', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('slot_details', models.JSONField(blank=True, null=True)),
                ('status', models.CharField(choices=[('CONFIRMED', 'Confirmed'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='CONFIRMED', max_length=20)),
                ('business', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='businesses.business')),
                ('service', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='services.service')),
                ('staff', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='staff.staff')),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'ordering': ['-booking_date', 'start_slot'],
                'indexes': [models.Index(fields=['service', 'staff', 'booking_date', 'status'], name='idx_appt_slot_key')],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('end_slot__isnull', True), ('end_slot__lte', 48), _connector='OR'),
                        name='ck_appt_end_slot_same_day',
                    ),
                    models.CheckConstraint(
                        condition=(
                            models.Q(start_slot__isnull=True) | models.Q(end_slot__isnull=True)
                            | models.Q(slots_used__isnull=True)
                            | models.Q(end_slot=models.F('start_slot') + models.F('slots_used'))
                        ),
                        name='ck_appt_slot_range_consistent',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentStatusLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('from_status', models.CharField(blank=True, choices=[('CONFIRMED', 'Confirmed'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], max_length=20)),
                ('to_status', models.CharField(choices=[('CONFIRMED', 'Confirmed'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], max_length=20)),
                ('changed_by', models.CharField(help_text='system / admin / api', max_length=80)),
                ('reason', models.TextField(blank=True)),
                ('changed_at', models.DateTimeField(auto_now_add=True)),
                ('appointment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_logs', to='bookings.appointment')),
            ],
            options={
                'verbose_name': 'Appointment Status Log',
                'verbose_name_plural': 'Appointment Status Logs',
                'ordering': ['changed_at'],
            },
        ),
        migrations.CreateModel(
            name='SlotLedger',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('booking_date', models.DateField(db_index=True)),
                ('version', models.PositiveIntegerField(default=0)),
                ('service', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='slot_ledgers', to='services.service')),
                ('staff', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='slot_ledgers', to='staff.staff')),
            ],
            options={
                'verbose_name': 'Slot Ledger',
                'verbose_name_plural': 'Slot Ledgers',
                'constraints': [models.UniqueConstraint(fields=('service', 'staff', 'booking_date'), name='uq_slot_ledger_key')],
            },
        ),
    ]
