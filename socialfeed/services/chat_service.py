"""
Global chat room: short text messages from signed-in users.

The history stream reuses the feed's NDJSON framing: one "metadata" event,
one "message" event per message oldest first, then "complete" or "error".
"""

import logging

from flask import current_app

from socialfeed.db import db
from socialfeed.errors import ApiError, ValidationError
from socialfeed.repositories import chat_message_repository
from socialfeed.schemas.chat_message_schema import ChatMessageSchema

logger = logging.getLogger(__name__)

STREAM_ERROR_MESSAGE = "Failed to load messages"


def _message_payload(row):
    return {
        "id": row.id,
        "message": row.message,
        "author_id": row.author_id,
        "created_at": row.created_at,
        "author": {
            "id": row.author_id,
            "username": row.author_username,
        },
    }


def clamp_window(limit=None, offset=None):
    default_limit = current_app.config["CHAT_DEFAULT_LIMIT"]
    max_limit = current_app.config["CHAT_MAX_LIMIT"]
    if limit is None:
        limit = default_limit
    return max(1, min(max_limit, limit)), max(0, offset or 0)


def send_message(actor, message):
    actor.require_user()

    if not isinstance(message, str) or not message.strip():
        raise ValidationError("Message is required and cannot be empty")

    max_length = current_app.config["CHAT_MAX_MESSAGE_LENGTH"]
    if len(message) > max_length:
        raise ValidationError(f"Message is too long (max {max_length} characters)")

    try:
        chat_message = chat_message_repository.create_message(actor.user_id, message.strip())
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.exception("Error sending chat message for %s", actor.user_id)
        raise ApiError("Failed to send message") from e

    return ChatMessageSchema().dump({
        "id": chat_message.id,
        "message": chat_message.message,
        "author_id": chat_message.author_id,
        "created_at": chat_message.created_at,
        "author": {"id": actor.user_id, "username": actor.username},
    })


def chat_events(limit, offset=0):
    """
    Yield the most recent `limit` messages after skipping `offset`, oldest first.
    """
    schema = ChatMessageSchema()
    try:
        rows = chat_message_repository.get_recent_messages(limit, offset)
        yield {"type": "metadata", "total": len(rows)}

        for row in reversed(rows):
            yield {"type": "message", "message": schema.dump(_message_payload(row))}
    except Exception:
        logger.exception("Error streaming chat messages (limit=%s, offset=%s)", limit, offset)
        db.session.rollback()
        yield {"type": "error", "message": STREAM_ERROR_MESSAGE}
        return

    yield {"type": "complete"}
