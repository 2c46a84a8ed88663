"""
Error taxonomy shared by services and route handlers.

Services raise these; the handler registered in autowhiz.main turns them into
JSON responses of the form {"error": "<message>"}.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class QuotaExceededError(AppError):
    status_code = 403
    default_message = "Monthly analysis limit reached. Please upgrade your plan."


class NotFoundError(AppError):
    # Also used for "exists but belongs to someone else"
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class UpstreamError(AppError):
    status_code = 502
    default_message = "Upstream service failed"


class InternalError(AppError):
    status_code = 500


class SignatureError(AppError):
    status_code = 400
    default_message = "Invalid signature"
