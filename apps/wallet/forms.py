from decimal import Decimal

from django import forms

from .models import PaymentMethod


class WithdrawalRequestForm(forms.Form):
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    method = forms.ChoiceField(choices=PaymentMethod.METHOD_TYPES)
    account_details = forms.JSONField(required=False)

    def clean_account_details(self):
        details = self.cleaned_data.get("account_details") or {}
        if not isinstance(details, dict):
            raise forms.ValidationError("Account details must be an object")
        return details


class PaymentMethodForm(forms.Form):
    type = forms.ChoiceField(choices=PaymentMethod.METHOD_TYPES)
    details = forms.JSONField()
    is_primary = forms.BooleanField(required=False)

    def clean_details(self):
        details = self.cleaned_data["details"]
        if not isinstance(details, dict):
            raise forms.ValidationError("Details must be an object")
        return details
