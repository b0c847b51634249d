"""
Double-submit CSRF protection for cookie sessions.

Bearer-token clients never send ambient credentials, so only requests whose
session arrived by cookie are checked.
"""

import hmac
import secrets

from flask import g, request, jsonify, current_app

from models.session import CHANNEL_COOKIE

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# no session yet, or signed by the gateway instead
EXEMPT_PATHS = frozenset({
    "/auth/login",
    "/auth/register",
    "/health",
    "/payments/callback",
})


def issue_csrf_token(resp):
    resp.set_cookie(
        CSRF_COOKIE,
        secrets.token_urlsafe(32),
        httponly=False,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def csrf_protect():
    """before_request hook; returns a 403 response when the check fails."""
    if request.method not in UNSAFE_METHODS or request.path in EXEMPT_PATHS:
        return None
    if getattr(g, "auth_channel", None) != CHANNEL_COOKIE:
        return None

    cookie_token = request.cookies.get(CSRF_COOKIE) or ""
    header_token = request.headers.get(CSRF_HEADER) or ""
    if not cookie_token or not hmac.compare_digest(cookie_token, header_token):
        return jsonify(error="CSRF validation failed"), 403
    return None
