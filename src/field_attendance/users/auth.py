from __future__ import annotations

from functools import wraps

from flask import g, request

from ..common.http import error_response
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import Principal
from .tokens import TokenService


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip()
    return ""


def current_principal() -> Principal:
    return g.principal


def build_guards(tokens: TokenService):
    """Return (token_required, admin_required) decorators bound to ``tokens``."""

    def token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                g.principal = tokens.verify(bearer_token())
            except AuthenticationError as e:
                return error_response(e)
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                principal = tokens.verify(bearer_token())
                if not principal.is_admin:
                    raise AuthorizationError("Admin access required")
            except (AuthenticationError, AuthorizationError) as e:
                return error_response(e)
            g.principal = principal
            return view(*args, **kwargs)

        return wrapper

    return token_required, admin_required
