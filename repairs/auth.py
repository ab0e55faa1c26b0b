"""
repairs/auth.py
===============
Stateless administrator authentication.

Token format
------------
    base64(username) + "." + hex(HMAC-SHA256(secret, username))

The HMAC is computed over the UTF-8 bytes of the username with the shared
ADMIN_COOKIE_SECRET. Nothing is stored server-side: a token stays valid for
as long as the cookie lives (Max-Age 24 h) and can only be revoked early by
rotating the secret.

Public API
----------
    token = sign_admin_token(username, secret)
    username = verify_admin_token(token, secret, admin_user)   # or None
    @admin_required            # page views, redirect to the login page
    @admin_required(api=True)  # JSON views, 401
"""

import base64
import binascii
import hashlib
import hmac
import logging
from functools import wraps
from typing import Optional

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# TOKEN CODEC
# ---------------------------------------------------------------------------

def _signature(username: str, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), username.encode("utf-8"), hashlib.sha256).digest()


def sign_admin_token(username: str, secret: str) -> str:
    payload = base64.b64encode(username.encode("utf-8")).decode("ascii")
    return f"{payload}.{_signature(username, secret).hex()}"


def _decode_username(payload: str) -> str:
    try:
        return base64.b64decode(payload).decode("utf-8")
    except (binascii.Error, ValueError):
        return ""


def verify_admin_token(token: Optional[str], secret: str, admin_user: str) -> Optional[str]:
    """
    Return the username carried by a valid token, else None.
    Every rejection is logged with its reason, never with the token itself.
    """
    if not token or not secret or not admin_user:
        logger.info("Admin token rejected: no token or admin env unset")
        return None

    parts = token.split(".")
    if len(parts) != 2:
        logger.info("Admin token rejected: invalid format")
        return None

    payload, sig_hex = parts
    username = _decode_username(payload)
    if not username or username != admin_user:
        logger.info("Admin token rejected: username mismatch or empty")
        return None

    try:
        sig = bytes.fromhex(sig_hex)
    except ValueError:
        logger.info("Admin token rejected: signature is not hex")
        return None

    if not hmac.compare_digest(sig, _signature(username, secret)):
        logger.info("Admin token rejected: signature invalid")
        return None

    return username


def check_credentials(username: str, password: str) -> bool:
    """Compare submitted credentials against ADMIN_USER / ADMIN_PASS."""
    user_ok = hmac.compare_digest(username.encode("utf-8"), settings.ADMIN_USER.encode("utf-8"))
    pass_ok = hmac.compare_digest(password.encode("utf-8"), settings.ADMIN_PASS.encode("utf-8"))
    return user_ok and pass_ok


def admin_configured() -> bool:
    return bool(settings.ADMIN_USER and settings.ADMIN_PASS and settings.ADMIN_COOKIE_SECRET)


# ---------------------------------------------------------------------------
# REQUEST HELPERS
# ---------------------------------------------------------------------------

def get_admin_user(request) -> Optional[str]:
    """Return the authenticated admin username for this request, or None."""
    token = request.COOKIES.get(settings.ADMIN_COOKIE_NAME, "").strip()
    return verify_admin_token(token, settings.ADMIN_COOKIE_SECRET, settings.ADMIN_USER)


def set_admin_cookie(response, username: str):
    response.set_cookie(
        settings.ADMIN_COOKIE_NAME,
        sign_admin_token(username, settings.ADMIN_COOKIE_SECRET),
        max_age=settings.ADMIN_COOKIE_MAX_AGE,
        path="/",
        secure=settings.ADMIN_COOKIE_SECURE,
        httponly=True,
        samesite="Lax",
    )
    return response


def clear_admin_cookie(response):
    response.delete_cookie(settings.ADMIN_COOKIE_NAME, path="/", samesite="Lax")
    return response


def admin_required(view_fn=None, *, api=False):
    """
    Guard a view with the admin cookie.
    Page views redirect to the login page; api=True views answer 401 JSON.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(request, *args, **kwargs):
            username = get_admin_user(request)
            if username is None:
                if api:
                    return JsonResponse({"error": "Unauthorized"}, status=401)
                return redirect("admin_login")
            request.admin_user = username
            return fn(request, *args, **kwargs)
        return wrapper

    if view_fn is not None:
        return decorator(view_fn)
    return decorator
