"""Error taxonomy shared by the JSON endpoints.

Each error carries the HTTP status it maps to. Views catch these at the
boundary and turn them into ``{"error": ...}`` responses with
:func:`error_response`.
"""

from django.http import JsonResponse


class ApiError(Exception):
    status = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ApiError):
    status = 400
    default_message = "Invalid request"


class AuthError(ApiError):
    status = 401
    default_message = "Unauthorized"


class NotFoundError(ApiError):
    status = 404
    default_message = "Not found"


class SignatureMismatchError(ApiError):
    status = 400
    default_message = "Signature verification failed"


class UpstreamError(ApiError):
    status = 500
    default_message = "Upstream service error"


def error_response(exc: ApiError, message: str | None = None) -> JsonResponse:
    return JsonResponse({"error": message or exc.message}, status=exc.status)
