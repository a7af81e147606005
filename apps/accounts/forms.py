import re

from django import forms
from django.contrib.auth.forms import AuthenticationForm

from .models import User

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


def normalize_phone(phone: str):
    """
    Phone numbers are stored in E.164 form.
    Examples:
    +254700123456  -> +254700123456
    +254 700 123 456 -> +254700123456
    """
    if not phone:
        return ""

    phone = phone.strip().replace(" ", "").replace("-", "")

    if not E164_PATTERN.match(phone):
        raise forms.ValidationError("Phone number must be in E.164 format (e.g., +1234567890)")

    return phone


def check_password_strength(password: str):
    if len(password) < 8:
        raise forms.ValidationError("Password must be at least 8 characters")

    checks = (
        re.search(r"[A-Z]", password),
        re.search(r"[a-z]", password),
        re.search(r"\d", password),
        re.search(r"[^A-Za-z0-9]", password),
    )
    if not all(checks):
        raise forms.ValidationError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )


# ------------------------------
# LOGIN FORM
# ------------------------------
class LoginForm(AuthenticationForm):
    """Accepts ``email`` as an alias of the username field."""

    def __init__(self, request=None, data=None, **kwargs):
        if data is not None and "username" not in data and "email" in data:
            data = {**data, "username": data["email"]}
        super().__init__(request, data=data, **kwargs)


# ------------------------------
# USER SIGNUP FORM
# ------------------------------
class SignupForm(forms.ModelForm):
    password = forms.CharField(required=True)
    confirm_password = forms.CharField(required=True)
    referral_code = forms.CharField(required=False)

    class Meta:
        model = User
        fields = ["name", "email", "phone", "gender"]

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("User already exists with this email")
        return email

    def clean_phone(self):
        return normalize_phone(self.cleaned_data.get("phone", ""))

    def clean_password(self):
        password = self.cleaned_data["password"]
        check_password_strength(password)
        return password

    def clean_referral_code(self):
        code = (self.cleaned_data.get("referral_code") or "").strip().upper()
        if not code:
            return None
        referrer = User.objects.filter(referral_code=code).first()
        if not referrer:
            raise forms.ValidationError("Invalid referral code")
        return referrer

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("password") and cleaned.get("password") != cleaned.get("confirm_password"):
            self.add_error("confirm_password", "Passwords don't match")
        return cleaned

    def save(self, commit=True):
        user = super().save(commit=False)
        user.username = user.email
        user.set_password(self.cleaned_data["password"])
        user.referred_by = self.cleaned_data.get("referral_code")
        if commit:
            user.save()
        return user
