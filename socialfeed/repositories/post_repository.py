import uuid

from socialfeed.db import db
from socialfeed.models.post_model import Post
from socialfeed.models.user_model import User


def create_post(author_id, text):
    post = Post(
        id=uuid.uuid4().hex,
        author_id=author_id,
        text=text
    )
    db.session.add(post)
    db.session.flush()

    return post


def get_by_id(post_id):
    return db.session.get(Post, post_id)


def get_post_summaries(limit, offset, author_id=None):
    """
    Newest first; id breaks ties so consecutive pages never overlap or skip.
    """
    query = (
        db.session.query(
            Post.id,
            Post.text,
            Post.author_id,
            Post.created_at,
            User.username.label("author_username"),
        )
        .join(User, User.id == Post.author_id)
        .filter(Post.is_deleted.is_(False))
    )

    if author_id is not None:
        query = query.filter(Post.author_id == author_id)

    return (
        query
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_post_ids_by_author(author_id):
    rows = db.session.query(Post.id).filter(Post.author_id == author_id).all()
    return [row[0] for row in rows]


def get_soft_deleted_posts():
    return Post.query.filter(Post.is_deleted.is_(True)).all()


def mark_deleted(post):
    post.is_deleted = True


def delete_post(post_id):
    return Post.query.filter(Post.id == post_id).delete(synchronize_session=False)
