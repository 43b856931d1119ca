from django import forms

from .models import Connection, MessageType, Role, Swipe


def validate_skills(skills):
    if skills is None:
        return []
    if not isinstance(skills, list) or not all(isinstance(s, str) for s in skills):
        raise forms.ValidationError("Enter a list of skill names.")
    return [s.strip() for s in skills if s.strip()]


class SignupForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(min_length=6)
    role = forms.ChoiceField(choices=Role.choices)
    branch = forms.CharField(max_length=150, required=False)
    skills = forms.JSONField(required=False)

    def clean_skills(self):
        return validate_skills(self.cleaned_data.get("skills"))


class VerifyOtpForm(forms.Form):
    email = forms.EmailField()
    otp = forms.RegexField(regex=r"^\d{6}$", error_messages={"invalid": "Enter the 6 digit code."})


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField()


class SkillsForm(forms.Form):
    skills = forms.JSONField(required=False)

    def clean_skills(self):
        return validate_skills(self.cleaned_data.get("skills"))


class MentorVerificationForm(forms.Form):
    linkedinUrl = forms.URLField(max_length=500, required=False)
    githubUrl = forms.URLField(max_length=500, required=False)
    cvUrl = forms.URLField(max_length=500, required=False)
    rating = forms.FloatField(min_value=0, max_value=5, required=False)


class SwipeForm(forms.Form):
    studentId = forms.IntegerField()
    mentorId = forms.IntegerField()
    direction = forms.ChoiceField(choices=Swipe.DIRECTION_CHOICES)


class ConnectionRequestForm(forms.Form):
    studentId = forms.IntegerField()
    mentorId = forms.IntegerField()


class RespondForm(forms.Form):
    connectionId = forms.IntegerField()
    status = forms.ChoiceField(choices=[(d, d) for d in Connection.DECISIONS])


class MessageForm(forms.Form):
    roomId = forms.CharField(max_length=64)
    senderId = forms.IntegerField()
    type = forms.ChoiceField(choices=MessageType.choices, required=False)
    text = forms.CharField(required=False, strip=True)
    voiceUrl = forms.CharField(max_length=2000, required=False)

    def clean_type(self):
        return self.cleaned_data.get("type") or MessageType.TEXT
