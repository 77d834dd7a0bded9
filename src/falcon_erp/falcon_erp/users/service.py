from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .repository import UserRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    name: str
    email: str
    role: Role


class AuthService:
    """Use case: authenticate a user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        email = require_non_empty(email, "Email").lower()
        user = self._users.get_by_email(email)
        if not user:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")
        if not user.email_verified:
            raise AuthenticationError("Email address not verified")

        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)

    def resolve(self, user_id: str | None) -> SessionUser:
        """Turn a session user id back into a verified caller."""
        if not user_id:
            raise AuthenticationError("Not authenticated")
        user = self._users.get_by_id(user_id)
        if not user:
            raise AuthenticationError("Not authenticated")
        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)
