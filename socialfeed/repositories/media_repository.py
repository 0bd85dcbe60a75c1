import uuid

from socialfeed.db import db
from socialfeed.models.media_model import Media
from socialfeed.models.post_model import Post


def add_media(post_id, media_type, url, position, caption=None):
    media = Media(
        id=uuid.uuid4().hex,
        post_id=post_id,
        type=media_type,
        url=url,
        caption=caption,
        position=position,
    )
    db.session.add(media)
    return media


def get_media_for_post(post_id):
    return (
        Media.query
        .filter(Media.post_id == post_id)
        .order_by(Media.position.asc())
        .all()
    )


def get_media_urls_for_posts(post_ids):
    if not post_ids:
        return []
    rows = db.session.query(Media.url).filter(Media.post_id.in_(post_ids)).all()
    return [row[0] for row in rows]


def delete_media_for_post(post_id):
    return Media.query.filter(Media.post_id == post_id).delete(synchronize_session=False)


def get_orphaned_media():
    return (
        Media.query
        .outerjoin(Post, Post.id == Media.post_id)
        .filter(Post.id.is_(None))
        .all()
    )


def delete_media(media_ids):
    if not media_ids:
        return 0
    return Media.query.filter(Media.id.in_(media_ids)).delete(synchronize_session=False)
