import os
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class AppTestCase(unittest.TestCase):
    """Builds one app per test class against a temporary SQLite file."""

    config_overrides = {}

    @classmethod
    def setUpClass(cls):
        db_fd, cls.db_path = tempfile.mkstemp(suffix=".db")
        os.close(db_fd)
        cls.upload_dir = tempfile.mkdtemp()

        from socialfeed import create_app
        from socialfeed.db import db

        overrides = {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_path}",
            "JWT_SECRET_KEY": "test-secret-key-with-enough-length",
            "STORAGE_BACKEND": "local",
            "UPLOAD_DIR": cls.upload_dir,
            "STORAGE_RETRY_BASE_DELAY": 0,
            "POST_SOFT_DELETE": False,
            "EMBED_FETCH_TITLES": False,
        }
        overrides.update(cls.config_overrides)

        cls.app = create_app(overrides)
        cls.client = cls.app.test_client()
        cls.db = db

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            cls.db.engine.dispose()
        if os.path.exists(cls.db_path):
            os.remove(cls.db_path)
        shutil.rmtree(cls.upload_dir, ignore_errors=True)

    def setUp(self):
        with self.app.app_context():
            self.db.drop_all()
            self.db.create_all()
        for name in os.listdir(self.upload_dir):
            os.remove(os.path.join(self.upload_dir, name))

    def _create_user(self, username, password="pass123", role="user", active=True):
        from werkzeug.security import generate_password_hash

        from socialfeed.repositories import user_repository

        with self.app.app_context():
            user = user_repository.create_user(
                username=username,
                password_hash=generate_password_hash(password),
                role=role,
            )
            user.is_active = active
            self.db.session.commit()
            return user.id

    def _create_post(self, author_id, text, created_at=None, media=(), is_deleted=False):
        """Insert a post directly; media is a list of (type, url, position)."""
        from socialfeed.models.media_model import Media
        from socialfeed.models.post_model import Post

        with self.app.app_context():
            post = Post(
                id=f"post_{text.replace(' ', '_')}",
                author_id=author_id,
                text=text,
                created_at=created_at or datetime.utcnow(),
                is_deleted=is_deleted,
            )
            self.db.session.add(post)
            for index, (media_type, url, position) in enumerate(media):
                self.db.session.add(Media(
                    id=f"{post.id}_m{index}",
                    post_id=post.id,
                    type=media_type,
                    url=url,
                    position=position,
                ))
            self.db.session.commit()
            return post.id

    def _create_posts(self, author_id, count, start=None):
        """Posts named p1..pN, p1 oldest, one minute apart."""
        start = start or datetime(2026, 1, 1, 12, 0, 0)
        return [
            self._create_post(
                author_id,
                f"p{index}",
                created_at=start + timedelta(minutes=index),
            )
            for index in range(1, count + 1)
        ]

    def _auth_header(self, username, password="pass123"):
        from socialfeed.services import auth_service

        with self.app.app_context():
            token = auth_service.login(username, password)["access_token"]
        return {"Authorization": f"Bearer {token}"}

    def _refresh_header(self, username, password="pass123"):
        from socialfeed.services import auth_service

        with self.app.app_context():
            token = auth_service.login(username, password)["refresh_token"]
        return {"Authorization": f"Bearer {token}"}

    def _audit_actions(self):
        from socialfeed.models.audit_log_model import AuditLog

        with self.app.app_context():
            return [log.action for log in AuditLog.query.order_by(AuditLog.timestamp).all()]
