import json
from datetime import datetime
from unittest.mock import patch

from support import AppTestCase

from socialfeed.auth import AuthContext
from socialfeed.errors import AuthorizationError, ValidationError
from socialfeed.models.audit_log_model import AuditLog
from socialfeed.models.user_model import User
from socialfeed.services import audit_service


class TestAuditService(AppTestCase):
    def setUp(self):
        super().setUp()
        self.admin_id = self._create_user("admin", role="admin")
        self.admin = AuthContext(user_id=self.admin_id, username="admin", role="admin")

    def _add_log(self, action, target_table="user", target_id="t1", timestamp=None, details=None):
        with self.app.app_context():
            self.db.session.add(AuditLog(
                id=f"log_{action}_{target_id}",
                user_id=self.admin_id,
                action=action,
                target_table=target_table,
                target_id=target_id,
                details=json.dumps(details) if details else None,
                timestamp=timestamp or datetime.utcnow(),
            ))
            self.db.session.commit()

    def test_entry_written_after_commit(self):
        with self.app.app_context():
            user = self.db.session.get(User, self.admin_id)
            user.bio = "hello"
            audit_service.record(self.admin_id, "UPDATE_USER", "user", self.admin_id, {"field": "bio"})

            self.assertEqual(AuditLog.query.count(), 0)
            self.db.session.commit()

            log = AuditLog.query.one()
            self.assertEqual(log.action, "UPDATE_USER")
            self.assertEqual(json.loads(log.details), {"field": "bio"})
            self.assertEqual(audit_service.pending_entries(), [])

    def test_record_stages_on_the_request_session(self):
        with self.app.app_context():
            audit_service.record(self.admin_id, "RESET_PASSWORD", "user", self.admin_id)

            self.assertTrue(self.db.session().in_transaction())
            self.assertEqual(
                [entry["action"] for entry in audit_service.pending_entries()],
                ["RESET_PASSWORD"],
            )
            self.db.session.commit()

            self.assertEqual(AuditLog.query.one().action, "RESET_PASSWORD")

    def test_rollback_discards_staged_entries(self):
        with self.app.app_context():
            audit_service.record(self.admin_id, "DELETE_USER", "user", "someone")
            self.db.session.rollback()
            self.db.session.commit()

            self.assertEqual(AuditLog.query.count(), 0)

    def test_failed_audit_write_keeps_mutation(self):
        with self.app.app_context():
            user = self.db.session.get(User, self.admin_id)
            user.bio = "kept"
            audit_service.record(self.admin_id, "UPDATE_USER", "user", self.admin_id)

            with patch.object(
                audit_service,
                "_write_entries",
                side_effect=RuntimeError("audit table unavailable"),
            ):
                with self.assertLogs("socialfeed.services.audit_service", level="ERROR"):
                    self.db.session.commit()

            self.assertEqual(self.db.session.get(User, self.admin_id).bio, "kept")
            self.assertEqual(AuditLog.query.count(), 0)

    def test_list_requires_admin(self):
        viewer = AuthContext(user_id="u1", username="viewer", role="user")
        with self.app.app_context():
            with self.assertRaises(AuthorizationError):
                audit_service.list_audit_logs(viewer)

    def test_list_filters_and_paginates(self):
        self._add_log("CREATE_USER", target_id="a", timestamp=datetime(2026, 3, 1, 9, 0))
        self._add_log("DELETE_USER", target_id="b", timestamp=datetime(2026, 3, 2, 23, 30))
        self._add_log("PERMANENT_DELETE", "post", "c", datetime(2026, 3, 5), {"isAuthorDelete": True})

        with self.app.app_context():
            everything = audit_service.list_audit_logs(self.admin, limit=2)
            self.assertEqual([log["action"] for log in everything["logs"]], ["PERMANENT_DELETE", "DELETE_USER"])
            self.assertEqual(everything["pagination"], {
                "page": 1,
                "limit": 2,
                "totalCount": 3,
                "totalPages": 2,
            })
            self.assertEqual(everything["logs"][0]["username"], "admin")
            self.assertEqual(everything["logs"][0]["targetTable"], "post")

            by_table = audit_service.list_audit_logs(self.admin, target_table="post")
            self.assertEqual(by_table["pagination"]["totalCount"], 1)

            by_search = audit_service.list_audit_logs(self.admin, search="isAuthorDelete")
            self.assertEqual([log["targetId"] for log in by_search["logs"]], ["c"])

            by_date = audit_service.list_audit_logs(
                self.admin, start_date="2026-03-01", end_date="2026-03-02",
                sort_by="timestamp", sort_order="asc",
            )
            self.assertEqual([log["action"] for log in by_date["logs"]], ["CREATE_USER", "DELETE_USER"])

    def test_list_clamps_limit(self):
        with self.app.app_context():
            result = audit_service.list_audit_logs(self.admin, page=0, limit=500)
        self.assertEqual(result["pagination"]["limit"], 50)
        self.assertEqual(result["pagination"]["page"], 1)
        self.assertEqual(result["pagination"]["totalPages"], 1)

    def test_invalid_date_is_rejected(self):
        with self.app.app_context():
            with self.assertRaises(ValidationError):
                audit_service.list_audit_logs(self.admin, start_date="yesterday")
