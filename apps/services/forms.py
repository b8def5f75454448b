from django import forms
from apps.core.http import parse_date
from .day_config import Weekday


class DayConfigForm(forms.Form):
    """
    Which weekday a day-config request targets: either a concrete date
    (its weekday is used) or a weekday name.
    """
    date = forms.CharField(required=False)
    weekday = forms.CharField(required=False)

    def clean_date(self):
        raw = self.cleaned_data.get('date')
        if not raw:
            return None
        parsed = parse_date(raw)
        if parsed is None:
            raise forms.ValidationError('Use YYYY-MM-DD.')
        return parsed

    def clean_weekday(self):
        raw = self.cleaned_data.get('weekday')
        if not raw:
            return None
        try:
            return Weekday[raw.strip().upper()]
        except KeyError:
            raise forms.ValidationError('Use a weekday name, sunday..saturday.') from None

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get('date') and not cleaned.get('weekday'):
            raise forms.ValidationError('Provide a date or a weekday.')
        return cleaned
