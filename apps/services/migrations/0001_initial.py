import uuid
import django.core.validators
import django.db.models.deletion
import apps.services.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('businesses', '0001_initial'),
        ('slot_templates', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Service',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('name', models.CharField(max_length=150)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(blank=True, max_length=60)),
                ('duration', models.PositiveIntegerField(help_text='Duration in minutes, rounded up to whole slots on save', validators=[django.core.validators.MinValueValidator(1)])),
                ('slots_needed', models.PositiveSmallIntegerField(blank=True, help_text='Contiguous 30-minute slots one booking occupies', null=True)),
                ('slots', models.JSONField(blank=True, default=dict, help_text='Per-weekday slot definitions, keyed sunday..saturday')),
                ('max_capacity', models.PositiveIntegerField(default=1, help_text='Default simultaneous bookings per slot window', validators=[django.core.validators.MinValueValidator(1)])),
                ('available_days', models.JSONField(blank=True, default=apps.services.models.default_available_days, help_text='Weekdays offered, 0=Sunday .. 6=Saturday. Empty means every day.')),
                ('start_time', models.CharField(blank=True, help_text='HH:MM', max_length=5, null=True)),
                ('end_time', models.CharField(blank=True, help_text='HH:MM', max_length=5, null=True)),
                ('min_advance_hours', models.PositiveIntegerField(default=24)),
                ('max_advance_days', models.PositiveIntegerField(default=30)),
                ('any_time_available', models.BooleanField(default=False, help_text='Skip the advance-notice window checks')),
                ('slot_migration', models.JSONField(blank=True, help_text='Audit record written by the legacy slot migration', null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('business', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='services', to='businesses.business')),
                ('template', models.ForeignKey(blank=True, help_text='Template this service was created from (traceability only).', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='services', to='slot_templates.slottemplate')),
            ],
            options={
                'verbose_name': 'Service',
                'verbose_name_plural': 'Services',
                'ordering': ['name', 'duration'],
            },
        ),
    ]
