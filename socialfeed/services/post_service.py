import logging

from flask import current_app

from socialfeed.db import db
from socialfeed.errors import AuthorizationError, NotFoundError, StorageIOError, ValidationError
from socialfeed.models.media_model import MEDIA_TYPES
from socialfeed.repositories import media_repository, post_repository
from socialfeed.services import audit_service, embed_service, feed_service
from socialfeed.storage import (
    data_url_to_bytes,
    ensure_content_matches,
    get_blob_store,
    mime_type_from_data_url,
)

logger = logging.getLogger(__name__)

UPLOAD_MEDIA_TYPES = ("image", "video", "audio")


class _PreparedMedia:
    def __init__(self, media_type, position, caption=None, url=None, data=None,
                 mime_type=None, filename=None):
        self.media_type = media_type
        self.position = position
        self.caption = caption
        self.url = url
        self.data = data
        self.mime_type = mime_type
        self.filename = filename

    @property
    def needs_upload(self):
        return self.data is not None


def _optional_caption(value):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Caption must be a string")
    return value.strip() or None


def _position(value, default):
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("Media position must be an integer") from e


def _check_upload_type(media_type, mime_type):
    major = (mime_type or "").split("/")[0]
    if major not in UPLOAD_MEDIA_TYPES:
        raise ValidationError(f"Unsupported media type: {mime_type}")
    if major != media_type:
        raise ValidationError(
            f"Media type {media_type} does not match file type {mime_type}"
        )


def _prepare_item(item, index, fetch_titles):
    if not isinstance(item, dict):
        raise ValidationError("Invalid media item")

    media_type = item.get("type")
    if media_type not in MEDIA_TYPES:
        raise ValidationError(f"Unsupported media type: {media_type}")

    position = _position(item.get("position"), index)
    caption = _optional_caption(item.get("caption"))
    url = item.get("url")
    data_url = item.get("data")

    if media_type == "embed":
        info = embed_service.resolve(url) if isinstance(url, str) else None
        if info is None:
            raise ValidationError("Unsupported embed URL")
        if fetch_titles and caption is None:
            caption = embed_service.fetch_title(info).title
        return _PreparedMedia(media_type, position, caption, url=info.embed_url)

    if data_url:
        mime_type = mime_type_from_data_url(data_url)
        if mime_type is None:
            raise ValidationError("Invalid data URL format")
        _check_upload_type(media_type, mime_type)
        data = data_url_to_bytes(data_url)
        ensure_content_matches(data, mime_type)
        return _PreparedMedia(
            media_type, position, caption, data=data, mime_type=mime_type,
            filename=item.get("name"),
        )

    if isinstance(url, str) and url.startswith(("http://", "https://")):
        return _PreparedMedia(media_type, position, caption, url=url)

    raise ValidationError("Media item requires data or url")


def _prepare_file(file, index):
    if not getattr(file, "filename", ""):
        raise ValidationError("Media file is required")

    mime_type = getattr(file, "mimetype", None) or ""
    media_type = mime_type.split("/")[0]
    _check_upload_type(media_type, mime_type)

    data = file.read()
    ensure_content_matches(data, mime_type)
    return _PreparedMedia(
        media_type, index, data=data, mime_type=mime_type, filename=file.filename,
    )


def _release_blobs(store, references):
    for reference in references:
        if store.owns(reference) and not store.delete(reference):
            logger.warning("Could not release blob %s", reference)


def create_post(actor, text, media_items=None, files=None):
    actor.require_user()

    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Post text is required")

    media_items = media_items or []
    files = files or []
    if not isinstance(media_items, list):
        raise ValidationError("Media must be a list")

    max_items = current_app.config.get("MAX_MEDIA_ITEMS", 4)
    if len(media_items) + len(files) > max_items:
        raise ValidationError(f"Maximum {max_items} media items allowed")

    fetch_titles = bool(current_app.config.get("EMBED_FETCH_TITLES", False))
    prepared = [
        _prepare_item(item, index, fetch_titles)
        for index, item in enumerate(media_items)
    ]
    prepared += [
        _prepare_file(file, len(prepared) + index)
        for index, file in enumerate(files)
    ]

    positions = [item.position for item in prepared]
    if any(position < 0 or position >= max_items for position in positions):
        raise ValidationError(f"Media position must be between 0 and {max_items - 1}")
    if len(set(positions)) != len(positions):
        raise ValidationError("Media positions must be unique")

    stored = []
    store = get_blob_store() if any(item.needs_upload for item in prepared) else None
    try:
        for item in prepared:
            if item.needs_upload:
                ref = store.put(item.data, item.mime_type, item.filename)
                item.url = ref.reference
                stored.append(ref.reference)
    except StorageIOError:
        _release_blobs(store, stored)
        raise

    try:
        post = post_repository.create_post(actor.user_id, text.strip())
        for item in prepared:
            media_repository.add_media(
                post_id=post.id,
                media_type=item.media_type,
                url=item.url,
                position=item.position,
                caption=item.caption,
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        if store is not None:
            _release_blobs(store, stored)
        raise

    logger.info("Post %s created by %s with %d media", post.id, actor.user_id, len(prepared))
    return {"post_id": post.id}


def purge_posts(post_ids):
    """Delete posts and their media rows in the current transaction."""
    for post_id in post_ids:
        media_repository.delete_media_for_post(post_id)
        post_repository.delete_post(post_id)


def delete_post(actor, post_id):
    actor.require_user()

    post = post_repository.get_by_id(post_id)
    if post is None or post.is_deleted:
        raise NotFoundError("Post not found")

    is_author = post.author_id == actor.user_id
    if not actor.is_admin and not is_author:
        raise AuthorizationError("Forbidden - You do not have permission to delete this post")

    soft_delete = bool(current_app.config.get("POST_SOFT_DELETE", False))
    media_urls = [media.url for media in media_repository.get_media_for_post(post_id)]

    try:
        if soft_delete:
            post_repository.mark_deleted(post)
        else:
            purge_posts([post_id])
        audit_service.record(
            actor.user_id,
            "SOFT_DELETE" if soft_delete else "PERMANENT_DELETE",
            "post",
            post_id,
            {
                "deletedBy": actor.user_id,
                "deletedByRole": actor.role,
                "isAuthorDelete": is_author,
                "isPermanentDelete": not soft_delete,
            },
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if not soft_delete:
        _release_blobs(get_blob_store(), media_urls)

    return {
        "success": True,
        "message": "Post deleted" if soft_delete else "Post permanently deleted",
    }


def release_media_files(media_urls):
    if media_urls:
        _release_blobs(get_blob_store(), media_urls)


def list_my_posts(actor, cursor):
    actor.require_user()
    return feed_service.get_page(cursor, author_id=actor.user_id)
