from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token, create_refresh_token

from socialfeed.db import db
from socialfeed.errors import NotFoundError, ValidationError
from socialfeed.models.user_model import ROLE_ADMIN
from socialfeed.repositories import user_repository
from socialfeed.services import audit_service

MIN_PASSWORD_LENGTH = 6


def _require_non_empty_string(value):
    return isinstance(value, str) and value.strip()


def _tokens_for(user):
    claims = {"username": user.username, "role": user.role}
    return {
        "access_token": create_access_token(identity=user.id, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=user.id, additional_claims=claims),
    }


def login(username, password):
    if not _require_non_empty_string(username) or not _require_non_empty_string(password):
        raise ValidationError("Invalid credentials")

    user = user_repository.get_by_username(username.strip())
    if not user or not check_password_hash(user.password_hash, password):
        raise ValidationError("Invalid credentials")
    if not user.is_active:
        raise ValidationError("Account is disabled")

    return _tokens_for(user)


def refresh_access_token(user_id):
    user = user_repository.get_by_id(user_id)
    if not user or not user.is_active:
        raise NotFoundError("User not found")

    claims = {"username": user.username, "role": user.role}
    return {
        "access_token": create_access_token(identity=user.id, additional_claims=claims)
    }


def validate_new_password(password):
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


def change_password(actor, current_password, new_password):
    actor.require_user()

    if not _require_non_empty_string(current_password):
        raise ValidationError("Current password is required")
    validate_new_password(new_password)

    user = user_repository.get_by_id(actor.user_id)
    if not user:
        raise NotFoundError("User not found")
    if not check_password_hash(user.password_hash, current_password):
        raise ValidationError("Current password is incorrect")

    user.password_hash = generate_password_hash(new_password)
    audit_service.record(
        actor.user_id,
        "CHANGE_PASSWORD",
        "user",
        actor.user_id,
        {"username": user.username},
    )
    db.session.commit()


def create_admin(username, password):
    """Bootstrap an admin account. Returns None if the username is taken."""
    if not _require_non_empty_string(username):
        raise ValidationError("Username is required")
    validate_new_password(password)

    username = username.strip()
    if user_repository.get_by_username(username):
        return None

    user = user_repository.create_user(
        username=username,
        password_hash=generate_password_hash(password),
        role=ROLE_ADMIN,
    )
    db.session.commit()
    return user
