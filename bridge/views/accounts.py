from django.conf import settings
from django.http import JsonResponse

from .. import accounts
from ..forms import LoginForm, SignupForm, SkillsForm, VerifyOtpForm
from ..utils import serialize_user
from .base import api_view, bind, json_body


@api_view(["POST"], auth=False)
def signup(request):
    data = bind(SignupForm, json_body(request))
    user, code = accounts.signup(
        data["name"], data["email"], data["password"], data["role"],
        branch=data.get("branch"), skills=data.get("skills"),
    )
    payload = {"message": "Signup successful. Please verify OTP.", "userId": user.pk}
    if settings.DEBUG:
        payload["debugOtp"] = code
    return JsonResponse(payload, status=201)


@api_view(["POST"], auth=False)
def verify_otp(request):
    data = bind(VerifyOtpForm, json_body(request))
    accounts.verify_otp(data["email"], data["otp"])
    return JsonResponse({"message": "Email verified successfully"})


@api_view(["POST"], auth=False)
def login(request):
    data = bind(LoginForm, json_body(request))
    token, user = accounts.login(data["email"], data["password"])
    return JsonResponse({"token": token, "user": serialize_user(user)})


@api_view(["POST"])
def update_skills(request):
    data = bind(SkillsForm, json_body(request))
    user = request.bridge_user
    user.set_skills(data["skills"])
    user.save(update_fields=["skills"])
    return JsonResponse({"message": "Skills updated", "skills": user.skills})
