"""Stateless admin sessions backed by a signed JWT in an HttpOnly cookie.

The server keeps no session table: logging out deletes the cookie but a
token copied before logout stays valid until it expires.
"""

import logging
import time
from functools import wraps

import jwt
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.shortcuts import redirect

from sammilan.errors import AuthError, error_response

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def _secret() -> str:
    secret = settings.ADMIN_JWT_SECRET
    if not secret:
        logger.error("ADMIN_JWT_SECRET missing in settings")
        raise ImproperlyConfigured("ADMIN_JWT_SECRET setting is required for admin sessions")
    return secret


def sign_admin_token(admin_id, email: str) -> str:
    now = int(time.time())
    payload = {
        "adminId": str(admin_id),
        "email": email,
        "iat": now,
        "exp": now + settings.ADMIN_JWT_TTL_SECONDS,
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def verify_admin_token(token: str | None):
    """Return the token payload, or ``None`` if it is missing, expired,
    malformed or signed with another key."""
    if not token:
        return None
    secret = _secret()
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None


def set_admin_cookie(response, token: str) -> None:
    response.set_cookie(
        settings.ADMIN_JWT_COOKIE,
        token,
        max_age=settings.ADMIN_JWT_TTL_SECONDS,
        path="/",
        secure=settings.ADMIN_COOKIE_SECURE,
        httponly=True,
        samesite="Lax",
    )


def clear_admin_cookie(response) -> None:
    response.set_cookie(
        settings.ADMIN_JWT_COOKIE,
        "",
        max_age=0,
        path="/",
        secure=settings.ADMIN_COOKIE_SECURE,
        httponly=True,
        samesite="Lax",
    )


def admin_from_request(request):
    """Admin payload for API views; ``None`` when there is no valid session."""
    try:
        return verify_admin_token(request.COOKIES.get(settings.ADMIN_JWT_COOKIE))
    except ImproperlyConfigured:
        return None


def current_admin(request):
    """Same check as :func:`admin_from_request`, cached on the request for
    server-rendered pages that consult it more than once."""
    if not hasattr(request, "_current_admin"):
        request._current_admin = admin_from_request(request)
    return request._current_admin


def admin_api_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        admin = admin_from_request(request)
        if not admin:
            return error_response(AuthError())
        request.admin = admin
        return view(request, *args, **kwargs)
    return wrapper


def admin_page_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        admin = current_admin(request)
        if not admin:
            return redirect(settings.ADMIN_LOGIN_URL)
        request.admin = admin
        return view(request, *args, **kwargs)
    return wrapper
