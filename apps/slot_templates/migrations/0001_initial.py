import uuid
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('businesses', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='SlotTemplate',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('name', models.CharField(max_length=120)),
                ('description', models.TextField(blank=True)),
                ('slots_needed', models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(48)])),
                ('duration', models.PositiveIntegerField(editable=False, help_text='Always slots_needed x 30 minutes')),
                ('category', models.CharField(blank=True, db_index=True, max_length=60)),
                ('is_default', models.BooleanField(db_index=True, default=False)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Display hints: color, icon, popular')),
                ('business', models.ForeignKey(blank=True, help_text='Empty for global templates shared by every business', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='slot_templates', to='businesses.business')),
            ],
            options={
                'verbose_name': 'Slot Template',
                'verbose_name_plural': 'Slot Templates',
                'ordering': ['-is_default', 'category', 'name', 'id'],
            },
        ),
    ]
