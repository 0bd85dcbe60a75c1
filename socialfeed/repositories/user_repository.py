import re
import uuid

from socialfeed.db import db
from socialfeed.models.user_model import User


_SORT_COLUMNS = {
    "username": User.username,
    "role": User.role,
    "createdAt": User.created_at,
}


def generate_user_id(username: str) -> str:
    """username_<8 hex>, with the username reduced to [a-z0-9_]."""
    sanitized = re.sub(r"[^a-z0-9]", "_", username.lower())
    sanitized = re.sub(r"_+", "_", sanitized)
    return f"{sanitized}_{uuid.uuid4().hex[:8]}"


def get_by_id(user_id: str):
    return db.session.get(User, user_id)


def get_by_username(username: str):
    return User.query.filter_by(username=username).first()


def create_user(username, password_hash, role):
    user = User(
        id=generate_user_id(username),
        username=username,
        password_hash=password_hash,
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()
    return user


def search_users(search, sort_by, sort_order, limit, offset):
    query = User.query
    if search:
        query = query.filter(User.username.like(f"%{search}%"))

    column = _SORT_COLUMNS.get(sort_by, User.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    return (
        query
        .order_by(ordering, User.id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def delete_user(user_id):
    return User.query.filter(User.id == user_id).delete(synchronize_session=False)
