from django.apps import AppConfig


class SlotTemplatesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.slot_templates'
    verbose_name = 'Slot Templates'
