from flask import current_app, jsonify, request

from socialfeed.schemas.post_schema import PostSchema
from socialfeed.services.feed_service import FeedCursor


def error_response(error):
    return jsonify({"error": str(error)}), getattr(error, "status_code", 500)


def cursor_from_args():
    default_limit = current_app.config["FEED_DEFAULT_LIMIT"]
    return FeedCursor.clamped(
        page=request.args.get("page", default=1, type=int),
        limit=request.args.get("limit", default=default_limit, type=int),
        max_limit=current_app.config["FEED_MAX_LIMIT"],
        default_limit=default_limit,
    )


def feed_page_payload(page, cursor):
    return {
        "posts": PostSchema(many=True).dump(page.posts),
        "hasMore": page.has_more,
        "page": cursor.page,
        "limit": cursor.limit,
    }
