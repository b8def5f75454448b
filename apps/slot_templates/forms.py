"""
Payload validation for the template endpoints.

Bodies arrive as camelCase JSON; JSON_FIELDS maps them onto form fields.
"""
from django import forms
from apps.core.clock import SLOTS_PER_DAY

JSON_FIELDS = {
    'name': 'name',
    'description': 'description',
    'slotsNeeded': 'slots_needed',
    'category': 'category',
    'isActive': 'is_active',
    'metadata': 'metadata',
}


def from_payload(payload: dict) -> dict:
    return {JSON_FIELDS[key]: value for key, value in payload.items() if key in JSON_FIELDS}


class _MetadataField(forms.Field):
    """Accepts an already-decoded JSON object."""

    def clean(self, value):
        value = super().clean(value)
        if value in (None, ''):
            return None
        if not isinstance(value, dict):
            raise forms.ValidationError('Must be an object with color, icon and popular.')
        return value


class TemplateCreateForm(forms.Form):
    name = forms.CharField(max_length=120)
    description = forms.CharField(required=False)
    slots_needed = forms.IntegerField(min_value=1, max_value=SLOTS_PER_DAY)
    category = forms.CharField(required=False, max_length=60)
    metadata = _MetadataField(required=False)

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise forms.ValidationError('Name is required.')
        return name


class TemplateUpdateForm(forms.Form):
    """Every field optional; the view only applies keys present in the body."""
    name = forms.CharField(required=False, max_length=120)
    description = forms.CharField(required=False)
    slots_needed = forms.IntegerField(required=False, min_value=1, max_value=SLOTS_PER_DAY)
    category = forms.CharField(required=False, max_length=60)
    is_active = forms.NullBooleanField(required=False)
    metadata = _MetadataField(required=False)

    def changed_fields(self) -> dict:
        return {key: self.cleaned_data[key] for key in self.data if key in self.fields}
