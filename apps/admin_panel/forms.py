# apps/admin_panel/forms.py

from django import forms

from apps.gigs.models import Task
from apps.wallet.models import Withdrawal


# ============================================================
# TASK CATALOG FORM
# ============================================================
class TaskForm(forms.ModelForm):
    class Meta:
        model = Task
        fields = [
            'title', 'description', 'category', 'url', 'reward',
            'min_tier', 'min_duration', 'is_active', 'is_orientation',
        ]

    def clean_reward(self):
        reward = self.cleaned_data["reward"]
        if reward < 0:
            raise forms.ValidationError("Reward cannot be negative")
        return reward


# ============================================================
# DECISION FORMS
# ============================================================
class RejectionForm(forms.Form):
    reason = forms.CharField(required=False, max_length=1000)


class WithdrawalDecisionForm(forms.Form):
    status = forms.ChoiceField(choices=[
        (Withdrawal.Status.COMPLETED, "Completed"),
        (Withdrawal.Status.FAILED, "Failed"),
    ])
    admin_notes = forms.CharField(required=False, max_length=1000)
