from flask import Flask, jsonify
from marshmallow import ValidationError

from snapfeed.config import Config
from snapfeed.db import db
from snapfeed.extensions.extensions import jwt, ma, socketio
from snapfeed.logging_config import setup_logging


def _register_jwt_callbacks():
    from snapfeed.services import session_service

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return session_service.is_token_revoked(jwt_payload)


def _register_blueprints(app):
    from snapfeed.routes.auth_routes import auth_bp
    from snapfeed.routes.main_routes import main_bp
    from snapfeed.routes.post_routes import post_bp
    from snapfeed.routes.upload_routes import upload_bp
    from snapfeed.routes.user_routes import user_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(user_bp, url_prefix="/api")
    app.register_blueprint(post_bp, url_prefix="/api")
    app.register_blueprint(upload_bp, url_prefix="/api")
    app.register_blueprint(main_bp)


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app.config["LOG_LEVEL"], app.config["LOG_FILE"])

    db.init_app(app)
    jwt.init_app(app)
    ma.init_app(app)

    from snapfeed.socket_events import register_socket_events

    # Handlers registered before init_app are copied onto every new server.
    register_socket_events()
    socketio.init_app(app)

    _register_jwt_callbacks()
    _register_blueprints(app)

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify({"error": "Invalid request", "fields": error.messages}), 400

    with app.app_context():
        from snapfeed.models import post_model, stored_object_model, user_model  # noqa: F401

        db.create_all()

    return app
