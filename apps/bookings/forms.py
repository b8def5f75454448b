"""
Request validation for the booking API.

Query strings and JSON bodies use camelCase keys; each form's FIELD_MAP
translates them before binding.
"""
from django import forms

DATE_FORMATS = ['%Y-%m-%d']


class _ApiForm(forms.Form):
    FIELD_MAP = {}

    @classmethod
    def from_request_data(cls, data):
        mapped = {}
        for key, name in cls.FIELD_MAP.items():
            if key in data:
                value = data.get(key)
                mapped[name] = value
        return cls(mapped)


class AvailabilityQueryForm(_ApiForm):
    FIELD_MAP = {'serviceId': 'service_id', 'staffId': 'staff_id', 'date': 'date', 'businessId': 'business_id'}

    service_id = forms.CharField(max_length=64)
    staff_id = forms.CharField(max_length=64, required=False)
    date = forms.DateField(input_formats=DATE_FORMATS)
    business_id = forms.CharField(max_length=64, required=False)


class MonthAvailabilityForm(_ApiForm):
    FIELD_MAP = {'year': 'year', 'month': 'month', 'businessId': 'business_id'}

    year = forms.IntegerField(min_value=1, max_value=9999)
    month = forms.IntegerField(min_value=1, max_value=12)
    business_id = forms.CharField(max_length=64)


class ReservationForm(_ApiForm):
    FIELD_MAP = {
        'serviceId': 'service_id', 'staffId': 'staff_id', 'date': 'date',
        'startSlot': 'start_slot', 'businessId': 'business_id', 'clientName': 'client_name',
    }

    service_id = forms.CharField(max_length=64)
    staff_id = forms.CharField(max_length=64)
    date = forms.DateField(input_formats=DATE_FORMATS)
    # Range is checked by the engine so out-of-day indices get their own error code.
    start_slot = forms.IntegerField()
    business_id = forms.CharField(max_length=64, required=False)
    client_name = forms.CharField(max_length=120, required=False)

    def clean_client_name(self):
        return (self.cleaned_data.get('client_name') or '').strip()


class RescheduleForm(_ApiForm):
    FIELD_MAP = {'date': 'date', 'startSlot': 'start_slot', 'staffId': 'staff_id', 'businessId': 'business_id'}

    date = forms.DateField(input_formats=DATE_FORMATS)
    start_slot = forms.IntegerField()
    staff_id = forms.CharField(max_length=64, required=False)
    business_id = forms.CharField(max_length=64, required=False)
