"""Forms validating application intake payloads."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from django import forms

from .models import Customer


class CustomerForm(forms.ModelForm):
    class Meta:
        model = Customer
        fields = [
            "name",
            "email",
            "mobile",
            "company",
            "license_type",
            "jurisdiction",
            "annual_turnover",
            "lead_source",
            "preferred_bank",
            "notes",
        ]

    def clean_mobile(self):
        mobile = (self.cleaned_data.get("mobile") or "").strip()
        digits = [char for char in mobile if char.isdigit()]
        if len(digits) < 7:
            raise forms.ValidationError("Enter a valid mobile number.")
        return mobile

    def clean_annual_turnover(self):
        turnover = self.cleaned_data.get("annual_turnover")
        if turnover is not None and turnover < 0:
            raise forms.ValidationError("Annual turnover cannot be negative.")
        return turnover


class ApplicationDataForm(forms.Form):
    """Business details and banking preferences stored on the application."""

    amount = forms.DecimalField(required=False, min_value=Decimal("0"), decimal_places=2)
    number_of_shareholders = forms.IntegerField(required=False, min_value=1)
    preferred_bank_1 = forms.CharField(required=False, max_length=255)
    preferred_bank_2 = forms.CharField(required=False, max_length=255)
    preferred_bank_3 = forms.CharField(required=False, max_length=255)
    any_suitable_bank = forms.BooleanField(required=False)
    document_checklist_complete = forms.BooleanField(required=False)
    additional_notes = forms.CharField(required=False)

    def clean(self):
        cleaned = super().clean()
        banks = [
            cleaned.get(f"preferred_bank_{index}")
            for index in (1, 2, 3)
            if cleaned.get(f"preferred_bank_{index}")
        ]
        if len(set(bank.lower() for bank in banks)) != len(banks):
            raise forms.ValidationError("Preferred banks must be different.")
        return cleaned

    def to_payload(self) -> Dict[str, Any]:
        """Return the cleaned data in a JSON-serialisable form."""

        payload: Dict[str, Any] = {}
        for key, value in self.cleaned_data.items():
            if value in (None, ""):
                continue
            if isinstance(value, Decimal):
                value = str(value)
            payload[key] = value
        return payload
