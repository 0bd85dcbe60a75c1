import logging
from dataclasses import dataclass, field

from socialfeed.db import db
from socialfeed.repositories import media_repository, post_repository

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
MAX_LIMIT = 50


@dataclass(frozen=True)
class FeedCursor:
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @classmethod
    def clamped(cls, page=None, limit=None, max_limit=MAX_LIMIT, default_limit=DEFAULT_LIMIT):
        """Out-of-range or missing values are pulled into range, never rejected."""
        page = 1 if page is None else page
        limit = default_limit if limit is None else limit
        return cls(
            page=max(1, int(page)),
            limit=min(max(1, int(max_limit)), max(1, int(limit))),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class FeedPage:
    posts: list = field(default_factory=list)
    has_more: bool = False


def fetch_summaries(cursor: FeedCursor, author_id=None):
    """
    One page of post summaries plus whether more exist.

    Asks for limit + 1 rows; getting the extra row back is what proves
    another page exists, and the row itself is dropped.
    """
    rows = post_repository.get_post_summaries(
        limit=cursor.limit + 1,
        offset=cursor.offset,
        author_id=author_id,
    )
    has_more = len(rows) > cursor.limit
    return rows[:cursor.limit], has_more


def assemble_post(summary):
    return {
        "id": summary.id,
        "text": summary.text,
        "author_id": summary.author_id,
        "created_at": summary.created_at,
        "author": {
            "id": summary.author_id,
            "username": summary.author_username,
        },
        "media": media_repository.get_media_for_post(summary.id),
    }


def get_page(cursor: FeedCursor, author_id=None) -> FeedPage:
    """
    Assemble a feed page.

    Read failures are logged and turned into an empty page so the feed
    stays available; writes elsewhere raise instead.
    """
    try:
        summaries, has_more = fetch_summaries(cursor, author_id)
        posts = [assemble_post(summary) for summary in summaries]
    except Exception:
        logger.exception(
            "Error fetching posts (page=%s, limit=%s, author=%s)",
            cursor.page,
            cursor.limit,
            author_id,
        )
        db.session.rollback()
        return FeedPage(posts=[], has_more=False)

    return FeedPage(posts=posts, has_more=has_more)
