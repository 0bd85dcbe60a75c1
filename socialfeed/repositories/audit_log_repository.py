from sqlalchemy import func, or_

from socialfeed.db import db
from socialfeed.models.audit_log_model import AuditLog
from socialfeed.models.user_model import User


_SORT_COLUMNS = {
    "username": User.username,
    "action": AuditLog.action,
    "targetTable": AuditLog.target_table,
    "timestamp": AuditLog.timestamp,
}


def _apply_filters(query, search=None, action=None, target_table=None, start=None, end=None):
    if search:
        term = f"%{search}%"
        query = query.filter(
            or_(
                User.username.like(term),
                AuditLog.action.like(term),
                AuditLog.target_table.like(term),
                AuditLog.target_id.like(term),
                AuditLog.details.like(term),
            )
        )
    if action:
        query = query.filter(AuditLog.action == action)
    if target_table:
        query = query.filter(AuditLog.target_table == target_table)
    if start is not None:
        query = query.filter(AuditLog.timestamp >= start)
    if end is not None:
        query = query.filter(AuditLog.timestamp <= end)
    return query


def search_logs(sort_by, sort_order, limit, offset, **filters):
    query = (
        db.session.query(AuditLog, User.username)
        .outerjoin(User, User.id == AuditLog.user_id)
    )
    query = _apply_filters(query, **filters)

    column = _SORT_COLUMNS.get(sort_by, AuditLog.timestamp)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    return (
        query
        .order_by(ordering, AuditLog.id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def count_logs(**filters):
    query = (
        db.session.query(func.count(AuditLog.id))
        .select_from(AuditLog)
        .outerjoin(User, User.id == AuditLog.user_id)
    )
    return _apply_filters(query, **filters).scalar() or 0
