import logging
from datetime import timedelta

import click
from flask import Flask

from socialfeed.config import Config
from socialfeed.db import db
from socialfeed.extensions.extensions import jwt, ma
from socialfeed.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        minutes=app.config["JWT_ACCESS_TOKEN_MINUTES"]
    )
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(
        days=app.config["JWT_REFRESH_TOKEN_DAYS"]
    )

    setup_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    jwt.init_app(app)
    ma.init_app(app)

    # Models and the audit session hooks register on import.
    from socialfeed.models import (  # noqa: F401
        audit_log_model,
        chat_message_model,
        media_model,
        post_model,
        user_model,
    )
    from socialfeed.services import audit_service  # noqa: F401

    from socialfeed.routes.admin_routes import admin_bp
    from socialfeed.routes.auth_routes import auth_bp
    from socialfeed.routes.chat_routes import chat_bp
    from socialfeed.routes.embed_routes import embed_bp
    from socialfeed.routes.media_routes import media_bp
    from socialfeed.routes.post_routes import post_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(post_bp, url_prefix="/api")
    app.register_blueprint(chat_bp, url_prefix="/api")
    app.register_blueprint(embed_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api")
    app.register_blueprint(media_bp)

    _register_commands(app)

    with app.app_context():
        db.create_all()

    logger.info("Application ready (storage backend: %s)", app.config["STORAGE_BACKEND"])
    return app


def _register_commands(app):
    @app.cli.command("create-admin")
    @click.option("--username", required=True)
    @click.option("--password", required=True, prompt=True, hide_input=True)
    def create_admin_command(username, password):
        """Create an admin account."""
        from socialfeed.errors import ValidationError
        from socialfeed.services import auth_service

        try:
            user = auth_service.create_admin(username, password)
        except ValidationError as e:
            raise click.ClickException(str(e))

        if user is None:
            click.echo(f'User "{username}" already exists')
            return
        click.echo(f'Admin user "{user.username}" created with id {user.id}')
