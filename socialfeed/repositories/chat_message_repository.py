import uuid

from socialfeed.db import db
from socialfeed.models.chat_message_model import ChatMessage
from socialfeed.models.user_model import User


def create_message(author_id, message):
    chat_message = ChatMessage(
        id=uuid.uuid4().hex,
        author_id=author_id,
        message=message
    )
    db.session.add(chat_message)
    db.session.flush()

    return chat_message


def get_recent_messages(limit, offset=0):
    """Newest first, with the author's username."""
    return (
        db.session.query(
            ChatMessage.id,
            ChatMessage.message,
            ChatMessage.author_id,
            ChatMessage.created_at,
            User.username.label("author_username"),
        )
        .join(User, User.id == ChatMessage.author_id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def delete_messages_by_author(author_id):
    return (
        ChatMessage.query
        .filter(ChatMessage.author_id == author_id)
        .delete(synchronize_session=False)
    )
