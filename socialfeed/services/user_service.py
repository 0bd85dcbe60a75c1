import logging
import secrets

from werkzeug.security import generate_password_hash

from socialfeed.db import db
from socialfeed.errors import NotFoundError, ValidationError
from socialfeed.models.user_model import ROLE_ADMIN, ROLES
from socialfeed.repositories import (
    chat_message_repository,
    media_repository,
    post_repository,
    user_repository,
)
from socialfeed.schemas.user_schema import UserSchema
from socialfeed.services import audit_service, feed_service, post_service
from socialfeed.services.auth_service import validate_new_password

logger = logging.getLogger(__name__)

DEFAULT_USER_LIMIT = 50
MAX_USER_LIMIT = 100
MAX_USERNAME_LENGTH = 32

_PASSWORD_CHARSET = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!@#$%^&*()-_=+"
)


def generate_random_password(length=12):
    return "".join(secrets.choice(_PASSWORD_CHARSET) for _ in range(length))


def _get_user_or_404(user_id):
    user = user_repository.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users(actor, search="", page=1, limit=DEFAULT_USER_LIMIT,
               sort_by="createdAt", sort_order="desc"):
    actor.require_admin()

    page = max(1, page or 1)
    limit = min(MAX_USER_LIMIT, max(1, limit or DEFAULT_USER_LIMIT))

    results = user_repository.search_users(
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit + 1,
        offset=(page - 1) * limit,
    )
    has_more = len(results) > limit

    return {
        "users": UserSchema(many=True).dump(results[:limit]),
        "pagination": {
            "page": page,
            "limit": limit,
            "hasMore": has_more,
        },
    }


def create_user(actor, username, password, role):
    actor.require_admin()

    if not isinstance(username, str) or not username.strip():
        raise ValidationError("Username is required")
    username = username.strip()
    if len(username) > MAX_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at most {MAX_USERNAME_LENGTH} characters")
    validate_new_password(password)
    if role not in ROLES:
        raise ValidationError('Role must be either "user" or "admin"')

    if user_repository.get_by_username(username):
        raise ValidationError("Username already exists")

    user = user_repository.create_user(
        username=username,
        password_hash=generate_password_hash(password),
        role=role,
    )
    audit_service.record(
        actor.user_id,
        "CREATE_USER",
        "user",
        user.id,
        {
            "createdByUserId": actor.user_id,
            "createdUsername": username,
            "assignedRole": role,
        },
    )
    db.session.commit()

    return UserSchema().dump(user)


def get_user(actor, user_id):
    actor.require_admin()
    return UserSchema().dump(_get_user_or_404(user_id))


def update_user(actor, user_id, updates):
    actor.require_admin()
    if not isinstance(updates, dict):
        raise ValidationError("Invalid JSON body")

    user = _get_user_or_404(user_id)
    valid_updates = {}

    if isinstance(updates.get("isActive"), bool):
        if user_id == actor.user_id and not updates["isActive"]:
            raise ValidationError("Cannot deactivate your own account")
        valid_updates["is_active"] = updates["isActive"]

    if "role" in updates:
        role = updates["role"]
        if role not in ROLES:
            raise ValidationError('Role must be either "user" or "admin"')
        if user_id == actor.user_id and user.role == ROLE_ADMIN and role != ROLE_ADMIN:
            raise ValidationError("Cannot remove your own admin role")
        valid_updates["role"] = role

    if not valid_updates:
        raise ValidationError("No valid updates provided")

    for field_name, value in valid_updates.items():
        setattr(user, field_name, value)

    audit_service.record(
        actor.user_id,
        "UPDATE_USER",
        "user",
        user_id,
        {
            "updatedFields": sorted(valid_updates),
            "updatedByUserId": actor.user_id,
        },
    )
    db.session.commit()

    return {
        "success": True,
        "message": f'User "{user.username}" has been updated',
    }


def delete_user(actor, user_id):
    actor.require_admin()
    if user_id == actor.user_id:
        raise ValidationError("Cannot delete your own account")

    user = _get_user_or_404(user_id)
    username = user.username
    post_ids = post_repository.get_post_ids_by_author(user_id)
    media_urls = media_repository.get_media_urls_for_posts(post_ids)

    try:
        post_service.purge_posts(post_ids)
        chat_message_repository.delete_messages_by_author(user_id)
        audit_service.record(
            actor.user_id,
            "DELETE_USER",
            "user",
            user_id,
            {
                "deletedUsername": username,
                "deletedByUserId": actor.user_id,
                "deletedPostCount": len(post_ids),
            },
        )
        user_repository.delete_user(user_id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    post_service.release_media_files(media_urls)

    return {
        "success": True,
        "message": f'User "{username}" has been deleted',
    }


def reset_password(actor, user_id):
    actor.require_admin()
    user = _get_user_or_404(user_id)

    new_password = generate_random_password()
    user.password_hash = generate_password_hash(new_password)
    audit_service.record(
        actor.user_id,
        "RESET_PASSWORD",
        "user",
        user_id,
        {"resetByUserId": actor.user_id},
    )
    db.session.commit()

    return {
        "success": True,
        "message": f'Password for user "{user.username}" has been reset',
        "newPassword": new_password,
    }


def delete_user_posts(actor, user_id):
    actor.require_admin()
    user = _get_user_or_404(user_id)

    post_ids = post_repository.get_post_ids_by_author(user_id)
    if not post_ids:
        return {
            "success": True,
            "message": f'No posts found for user "{user.username}"',
            "count": 0,
        }

    media_urls = media_repository.get_media_urls_for_posts(post_ids)
    try:
        post_service.purge_posts(post_ids)
        audit_service.record(
            actor.user_id,
            "DELETE_ALL_USER_POSTS",
            "post",
            user_id,
            {
                "deletedByUserId": actor.user_id,
                "targetUsername": user.username,
                "postCount": len(post_ids),
            },
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    post_service.release_media_files(media_urls)

    return {
        "success": True,
        "message": f'Deleted {len(post_ids)} posts by user "{user.username}"',
        "count": len(post_ids),
    }


def get_user_posts(actor, user_id, cursor):
    actor.require_admin()
    _get_user_or_404(user_id)
    return feed_service.get_page(cursor, author_id=user_id)


def cleanup_deleted_posts(actor):
    """
    Sweep for leftovers of interrupted or soft deletes.

    Each soft-deleted post is removed with its media in its own transaction
    so one failure does not block the rest. Media rows whose post is gone
    are removed afterwards.
    """
    actor.require_admin()

    results = []
    for post in post_repository.get_soft_deleted_posts():
        post_id = post.id
        media_urls = media_repository.get_media_urls_for_posts([post_id])
        try:
            post_service.purge_posts([post_id])
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.exception("Error deleting post %s", post_id)
            results.append({"id": post_id, "success": False, "error": str(e)})
            continue

        post_service.release_media_files(media_urls)
        results.append({"id": post_id, "success": True})

    orphaned = media_repository.get_orphaned_media()
    orphaned_ids = [media.id for media in orphaned]
    orphaned_urls = [media.url for media in orphaned]
    if orphaned_ids:
        try:
            media_repository.delete_media(orphaned_ids)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.exception("Error removing %d orphaned media rows", len(orphaned_ids))
            orphaned_ids = []
        else:
            post_service.release_media_files(orphaned_urls)

    success_count = sum(1 for result in results if result["success"])

    audit_service.record(
        actor.user_id,
        "CLEANUP_DELETED_POSTS",
        "post",
        "*",
        {
            "totalProcessed": len(results),
            "successfullyDeleted": success_count,
            "orphanedMediaRemoved": len(orphaned_ids),
        },
    )
    db.session.commit()

    return {
        "success": True,
        "message": (
            f"Processed {len(results)} posts, successfully deleted {success_count}"
        ),
        "totalProcessed": len(results),
        "successfullyDeleted": success_count,
        "orphanedMediaRemoved": len(orphaned_ids),
        "details": results,
    }
