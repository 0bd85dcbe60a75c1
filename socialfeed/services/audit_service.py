"""
Audit trail for mutating administrative actions.

record() only stages an entry on the current session. The entries are
written by an after_commit hook on a separate connection, so the audited
mutation commits whether or not its audit write succeeds, and a rollback
drops whatever was staged.
"""

import json
import logging
import math
import uuid
from datetime import datetime, time

from sqlalchemy import event
from sqlalchemy.orm import Session

from socialfeed.db import db
from socialfeed.errors import ValidationError
from socialfeed.models.audit_log_model import AuditLog
from socialfeed.repositories import audit_log_repository
from socialfeed.schemas.audit_log_schema import AuditLogSchema

logger = logging.getLogger(__name__)

_PENDING_KEY = "pending_audit_entries"

DEFAULT_LOG_LIMIT = 15
MAX_LOG_LIMIT = 50


def record(actor_id, action, target_table, target_id, details=None, session=None):
    session = session or db.session()
    # Staged entries belong to a transaction; its rollback must see them.
    if not session.in_transaction():
        session.begin()

    entry = {
        "id": uuid.uuid4().hex,
        "user_id": actor_id,
        "action": action,
        "target_table": target_table,
        "target_id": str(target_id),
        "details": json.dumps(details, default=str) if details is not None else None,
        "timestamp": datetime.utcnow(),
    }
    session.info.setdefault(_PENDING_KEY, []).append(entry)
    return entry


def pending_entries(session=None):
    session = session or db.session()
    return list(session.info.get(_PENDING_KEY, []))


def _write_entries(bind, entries):
    with bind.begin() as connection:
        connection.execute(AuditLog.__table__.insert(), entries)


@event.listens_for(Session, "after_commit")
def _write_after_commit(session):
    entries = session.info.pop(_PENDING_KEY, None)
    if not entries:
        return

    try:
        _write_entries(session.get_bind(), entries)
    except Exception:
        logger.exception(
            "Failed to write %d audit entries (%s)",
            len(entries),
            ", ".join(entry["action"] for entry in entries),
        )


@event.listens_for(Session, "after_soft_rollback")
def _discard_after_rollback(session, previous_transaction):
    if previous_transaction.parent is None:
        session.info.pop(_PENDING_KEY, None)


def _parse_date(value, end_of_day=False):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date: {value}") from e

    # A bare date as the end of the range covers that whole day.
    if end_of_day and len(value) <= 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


def list_audit_logs(
    actor,
    page=1,
    limit=DEFAULT_LOG_LIMIT,
    search="",
    action="",
    target_table="",
    start_date="",
    end_date="",
    sort_by="timestamp",
    sort_order="desc",
):
    actor.require_admin()

    page = max(1, page or 1)
    limit = min(MAX_LOG_LIMIT, max(1, limit or DEFAULT_LOG_LIMIT))

    filters = {
        "search": search or None,
        "action": action or None,
        "target_table": target_table or None,
        "start": _parse_date(start_date),
        "end": _parse_date(end_date, end_of_day=True),
    }

    rows = audit_log_repository.search_logs(
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=(page - 1) * limit,
        **filters,
    )
    total_count = audit_log_repository.count_logs(**filters)

    logs = [
        AuditLogSchema().dump({
            "id": log.id,
            "user_id": log.user_id,
            "username": username,
            "action": log.action,
            "target_table": log.target_table,
            "target_id": log.target_id,
            "details": log.details,
            "timestamp": log.timestamp,
        })
        for log, username in rows
    ]

    return {
        "logs": logs,
        "pagination": {
            "page": page,
            "limit": limit,
            "totalCount": total_count,
            "totalPages": max(1, math.ceil(total_count / limit)),
        },
    }
