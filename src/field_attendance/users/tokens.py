from __future__ import annotations

from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.constants import TOKEN_MAX_AGE_SECONDS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .model import Principal

_SALT = "field-attendance-auth"


class TokenService:
    """Signs and verifies bearer tokens.

    Issuing tokens to real users belongs to the identity provider; ``issue``
    is here for operators (``flask issue-token``) and tests.
    """

    def __init__(self, secret_key: str, *, max_age: int = TOKEN_MAX_AGE_SECONDS):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_SALT)
        self._max_age = int(max_age)

    def issue(self, principal: Principal) -> str:
        return self._serializer.dumps(
            {
                "user_id": principal.user_id,
                "employee_id": principal.employee_id,
                "name": principal.name,
                "role": principal.role.value,
            }
        )

    def verify(self, token: Optional[str]) -> Principal:
        if not token:
            raise AuthenticationError("Not authorized, no token")
        try:
            data = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired:
            raise AuthenticationError("Token expired")
        except BadSignature:
            raise AuthenticationError("Not authorized, token failed")

        try:
            return Principal(
                user_id=str(data["user_id"]),
                employee_id=str(data["employee_id"]),
                name=str(data.get("name") or ""),
                role=Role(data.get("role", Role.EMPLOYEE.value)),
            )
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Not authorized, token failed")
