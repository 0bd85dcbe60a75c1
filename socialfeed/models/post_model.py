from datetime import datetime

from socialfeed.db import db


class Post(db.Model):
    __tablename__ = "posts"

    id = db.Column(db.String(255), primary_key=True)
    author_id = db.Column(db.String(255), db.ForeignKey("users.id"), nullable=False)
    text = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
