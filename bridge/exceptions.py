"""
Error taxonomy for the mentor bridge.

Services raise these; the HTTP layer turns them into JSON error bodies
carrying ``code`` and the matching status, the socket layer into
``{"action": "error"}`` frames.
"""


class BridgeError(Exception):
    code = "error"
    status = 400
    default_message = "Request failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {"error": self.message, "code": self.code}


class InvalidRequest(BridgeError):
    code = "invalid_request"
    default_message = "Invalid request"

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = errors or {}

    def as_dict(self):
        data = super().as_dict()
        if self.errors:
            data["fields"] = self.errors
        return data


class InvalidReference(BridgeError):
    code = "invalid_reference"
    default_message = "Unknown user"


class InvalidOtp(BridgeError):
    code = "invalid_otp"
    default_message = "Invalid or expired OTP"


class NotFound(BridgeError):
    code = "not_found"
    status = 404
    default_message = "Not found"


class InvalidTransition(BridgeError):
    code = "invalid_transition"
    status = 409
    default_message = "Transition not allowed"


class Unauthorized(BridgeError):
    code = "unauthorized"
    status = 403
    default_message = "Not allowed"


class AuthenticationFailed(Unauthorized):
    code = "unauthenticated"
    status = 401
    default_message = "Invalid credentials"


class VerificationRequired(Unauthorized):
    code = "verification_required"
    default_message = "Please verify your email first"


class TransientStoreFailure(BridgeError):
    code = "store_unavailable"
    status = 503
    default_message = "Storage temporarily unavailable, retry later"
