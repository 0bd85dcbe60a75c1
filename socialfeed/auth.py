from dataclasses import dataclass

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from socialfeed.db import db
from socialfeed.errors import AuthorizationError
from socialfeed.models.user_model import ROLE_ADMIN, User


@dataclass(frozen=True)
class AuthContext:
    """Who is calling. Services receive it explicitly instead of reading request state."""

    user_id: str | None = None
    username: str | None = None
    role: str | None = None

    @classmethod
    def anonymous(cls):
        return cls()

    @classmethod
    def for_user(cls, user: User):
        return cls(user_id=user.id, username=user.username, role=user.role)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == ROLE_ADMIN

    def require_user(self):
        if not self.is_authenticated:
            raise AuthorizationError("Unauthorized - You must be logged in")

    def require_admin(self):
        if not self.is_admin:
            raise AuthorizationError("Forbidden - Admin access required")


def current_auth_context() -> AuthContext:
    """
    Build the caller's context from the request's JWT.

    The user row is re-read on every request so role changes and
    deactivation apply to tokens that were issued earlier.
    """
    verify_jwt_in_request(optional=True)
    user_id = get_jwt_identity()
    if not user_id:
        return AuthContext.anonymous()

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return AuthContext.anonymous()
    return AuthContext.for_user(user)
