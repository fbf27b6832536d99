import base64
from datetime import date

from django import forms

from . import conf

ALLOWED_LOGO_TYPES = ("image/png", "image/jpeg", "image/gif")


class TransactionFileForm(forms.Form):
    data_file = forms.FileField(widget=forms.ClearableFileInput(attrs={
        "accept": ".xlsx,.xlsm,.xls,.csv",
    }))


class CustomerSelectForm(forms.Form):
    customer = forms.CharField(max_length=255)


class ManualPaymentForm(forms.Form):
    trx_date = forms.DateField(initial=date.today, widget=forms.DateInput(attrs={"type": "date"}))
    number = forms.CharField(max_length=64, widget=forms.TextInput(attrs={"placeholder": "e.g. 1001"}))
    region = forms.CharField(max_length=64, initial=lambda: conf.get("SOA_DEFAULT_REGION"))
    site_location = forms.CharField(max_length=128, required=False)
    amount = forms.DecimalField(max_digits=15, decimal_places=2, min_value=0)


class StatementConfigForm(forms.Form):
    start_date = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}))
    end_date = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}))
    opening_balance = forms.DecimalField(max_digits=15, decimal_places=2, required=False)
    operating_unit = forms.CharField(max_length=128, required=False)
    logo = forms.FileField(required=False, widget=forms.ClearableFileInput(attrs={"accept": "image/*"}))

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if start and end and start > end:
            raise forms.ValidationError("From date must not be after To date.")
        return cleaned

    def clean_logo(self):
        upload = self.cleaned_data.get("logo")
        if not upload:
            return None
        content_type = getattr(upload, "content_type", "") or ""
        if content_type not in ALLOWED_LOGO_TYPES:
            raise forms.ValidationError("Logo must be a PNG, JPEG or GIF image.")
        encoded = base64.b64encode(upload.read()).decode("ascii")
        return f"data:{content_type};base64,{encoded}"
