from django import forms

from apps.accounts.tiers import Tier


class CheckoutForm(forms.Form):
    tier = forms.ChoiceField(choices=Tier.choices)
