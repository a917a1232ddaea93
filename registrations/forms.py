"""
Django forms for athlete registration.
"""
import re
from django import forms
from .intake import DOCUMENT_FIELDS
from .models import Registration

DISTRICTS = [
    ('', 'Select District'),
    ('Anantnag', 'Anantnag'),
    ('Bandipora', 'Bandipora'),
    ('Baramulla', 'Baramulla'),
    ('Budgam', 'Budgam'),
    ('Doda', 'Doda'),
    ('Ganderbal', 'Ganderbal'),
    ('Jammu', 'Jammu'),
    ('Kargil', 'Kargil'),
    ('Kathua', 'Kathua'),
    ('Kishtwar', 'Kishtwar'),
    ('Kulgam', 'Kulgam'),
    ('Kupwara', 'Kupwara'),
    ('Leh', 'Leh'),
    ('Poonch', 'Poonch'),
    ('Pulwama', 'Pulwama'),
    ('Rajouri', 'Rajouri'),
    ('Ramban', 'Ramban'),
    ('Reasi', 'Reasi'),
    ('Samba', 'Samba'),
    ('Shopian', 'Shopian'),
    ('Srinagar', 'Srinagar'),
    ('Udhampur', 'Udhampur'),
]


def _digits(value):
    return re.sub(r'[\s-]', '', value or '')


class AthleteRegistrationForm(forms.ModelForm):
    """
    Form for JKTA athlete registration.
    Document uploads are optional here; which ones are mandatory is decided
    by the frontend.
    """

    district = forms.ChoiceField(choices=DISTRICTS)
    # Accept "1234 5678 9012"; stored as 12 digits
    aadhaar_number = forms.CharField(max_length=14)

    photo = forms.FileField(required=False)
    certificate = forms.FileField(required=False)
    resident_certificate = forms.FileField(required=False)
    aadhaar_front_photo = forms.FileField(required=False)
    aadhaar_back_photo = forms.FileField(required=False)

    # Honeypot field for spam protection (hidden from users)
    website = forms.CharField(required=False, widget=forms.HiddenInput(), label='')

    class Meta:
        model = Registration
        fields = [
            'athlete_name', 'father_name', 'mother_name', 'dob', 'gender',
            'district', 'mobile', 'email', 'aadhaar_number', 'address', 'pin',
            'pan_number', 'academy_name', 'coach_name',
        ]
        widgets = {
            'dob': forms.DateInput(attrs={'type': 'date'}),
        }

    def clean_mobile(self):
        mobile = _digits(self.cleaned_data.get('mobile'))
        if mobile.startswith('+91'):
            mobile = mobile[3:]
        if not re.fullmatch(r'\d{10}', mobile):
            raise forms.ValidationError('Enter a 10 digit mobile number.')
        return mobile

    def clean_aadhaar_number(self):
        aadhaar = _digits(self.cleaned_data.get('aadhaar_number'))
        if not re.fullmatch(r'\d{12}', aadhaar):
            raise forms.ValidationError('Aadhaar number must be 12 digits.')
        return aadhaar

    def clean_pin(self):
        pin = _digits(self.cleaned_data.get('pin'))
        if not re.fullmatch(r'\d{6}', pin):
            raise forms.ValidationError('PIN code must be 6 digits.')
        return pin

    def clean_pan_number(self):
        pan = (self.cleaned_data.get('pan_number') or '').strip().upper()
        return pan or None

    def clean_email(self):
        return (self.cleaned_data.get('email') or '').strip().lower()

    def clean(self):
        cleaned_data = super().clean()
        # Spam protection: honeypot field should be empty
        if cleaned_data.get('website'):
            raise forms.ValidationError("Spam detected.")
        return cleaned_data

    def applicant_fields(self):
        """Cleaned model fields, without uploads or the honeypot."""
        return {name: self.cleaned_data.get(name) for name in self.Meta.fields}

    def document_files(self):
        """Uploaded documents keyed by field name; missing ones are left out."""
        return {name: self.cleaned_data[name] for name in DOCUMENT_FIELDS if self.cleaned_data.get(name)}
