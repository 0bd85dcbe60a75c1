from datetime import datetime

from socialfeed.db import db


class AuditLog(db.Model):
    __tablename__ = "audit_log"

    id = db.Column(db.String(255), primary_key=True)
    # Actor; kept as plain text so entries survive the actor's deletion.
    user_id = db.Column(db.String(255), nullable=False, index=True)
    action = db.Column(db.String(32), nullable=False)
    target_table = db.Column(db.String(32), nullable=False)
    target_id = db.Column(db.String(255), nullable=False)
    details = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
