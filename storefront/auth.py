# storefront/auth.py
"""Shared-secret guard for the admin surface."""
import hmac

from fastapi import Request

from . import config
from .errors import AuthorizationError, ServerMisconfigured

ADMIN_COOKIE_NAME = "admin_token"
ADMIN_HEADER = "x-admin-token"
SESSION_MAX_AGE = 60 * 60 * 8


def provided_token(request: Request) -> str:
    header = (request.headers.get(ADMIN_HEADER) or "").strip()
    return header or (request.cookies.get(ADMIN_COOKIE_NAME) or "").strip()


def check_token(token: str) -> None:
    expected = config.admin_token()
    if not expected:
        raise ServerMisconfigured()
    if not token or not hmac.compare_digest(token.encode(), expected.encode()):
        raise AuthorizationError()


def require_admin(request: Request) -> None:
    check_token(provided_token(request))
