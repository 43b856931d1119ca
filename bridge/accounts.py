"""
Identity: signup, OTP email verification, login and bearer tokens.

Tokens are Django-signed ``{id, role}`` payloads. Clients treat them as
opaque strings and send them as ``Authorization: Bearer <token>``.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import authenticate
from django.core import signing
from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.utils import timezone

from .exceptions import AuthenticationFailed, InvalidOtp, InvalidRequest, VerificationRequired
from .models import OneTimePassword, User

logger = logging.getLogger(__name__)

TOKEN_SALT = "bridge.bearer"


def generate_otp():
    return f"{secrets.randbelow(900000) + 100000}"


def issue_otp(email):
    code = generate_otp()
    expires_at = timezone.now() + timedelta(seconds=settings.BRIDGE_OTP_TTL)
    OneTimePassword.objects.update_or_create(email=email, defaults={"code": code, "expires_at": expires_at})

    minutes = settings.BRIDGE_OTP_TTL // 60
    send_mail(
        subject="Your OTP Verification Code",
        message=f"Your OTP is {code}. It expires in {minutes} minutes.",
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
        html_message=f"<b>Your OTP is {code}. It expires in {minutes} minutes.</b>",
        fail_silently=True,
    )
    logger.debug("OTP issued for %s", email)
    return code


def signup(name, email, password, role, branch="", skills=None):
    """Create an unverified account and mail its OTP. Returns (user, code)."""
    email = User.objects.normalize_email(email).lower()
    user = User(username=email, email=email, name=name, role=role, branch=branch or "")
    user.set_skills(skills)
    user.set_password(password)
    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        raise InvalidRequest("An account with this email already exists", errors={"email": ["Already registered."]})

    logger.info("Signed up %s %s", role, user.pk)
    code = issue_otp(email)
    return user, code


def verify_otp(email, code):
    email = (email or "").lower()
    row = OneTimePassword.objects.filter(email=email).first()
    if row is None:
        raise InvalidOtp()
    if row.is_expired:
        # expired codes are purged as they are found
        row.delete()
        raise InvalidOtp()
    if not secrets.compare_digest(row.code, str(code or "")):
        raise InvalidOtp()

    User.objects.filter(email=email).update(is_verified=True)
    row.delete()
    logger.info("Verified %s", email)


def purge_expired_otps():
    deleted, _ = OneTimePassword.objects.filter(expires_at__lte=timezone.now()).delete()
    return deleted


def issue_token(user):
    return signing.dumps({"id": user.pk, "role": user.role}, salt=TOKEN_SALT)


def user_for_token(token):
    """Resolve a bearer token to an active user, or None."""
    if not token:
        return None
    try:
        data = signing.loads(token, salt=TOKEN_SALT, max_age=settings.BRIDGE_TOKEN_MAX_AGE)
    except signing.BadSignature:
        return None
    user = User.objects.filter(pk=data.get("id"), is_active=True).first()
    if user is None or user.role != data.get("role"):
        return None
    return user


def login(email, password):
    """Check credentials and return (token, user)."""
    email = (email or "").lower()
    user = authenticate(username=email, password=password)
    if user is None:
        raise AuthenticationFailed()
    if not user.is_verified:
        raise VerificationRequired()
    return issue_token(user), user
