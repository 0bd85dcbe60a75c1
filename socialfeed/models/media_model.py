from datetime import datetime

from socialfeed.db import db


MEDIA_TYPES = ("image", "video", "audio", "embed")


class Media(db.Model):
    __tablename__ = "media"

    id = db.Column(db.String(255), primary_key=True)
    # Removed by the application together with its post, not by the database.
    post_id = db.Column(
        db.String(255),
        db.ForeignKey("posts.id"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(16), nullable=False)
    url = db.Column(db.Text, nullable=False)
    caption = db.Column(db.Text, nullable=True)
    position = db.Column(db.Integer, nullable=False)
    uploaded_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint(
            "post_id", "position",
            name="unique_media_position"
        ),
    )
