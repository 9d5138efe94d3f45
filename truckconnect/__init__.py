from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
import os

db = SQLAlchemy()


def _init_sentry(app):
    """Sentry error monitoring (optional -- only active when SENTRY_DSN is set)"""
    dsn = app.config.get('SENTRY_DSN')
    if not dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )


def create_app(config_name=None, config_overrides=None):
    """Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from truckconnect.config import config
    app.config.from_object(config[config_name])
    if config_overrides:
        app.config.update(config_overrides)

    _init_sentry(app)

    from truckconnect.logging_config import configure_logging
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    CORS(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}})

    from truckconnect.extensions import limiter
    limiter.init_app(app)

    from truckconnect.middleware import RequestIdMiddleware, register_request_hooks
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)
    register_request_hooks(app)

    from truckconnect.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from truckconnect.routes import (
        auth_bp, loads_bp, drivers_bp, ratings_bp, notifications_bp, admin_bp, profile_bp,
    )

    api_prefix = app.config['API_PREFIX']
    app.register_blueprint(auth_bp, url_prefix=f'{api_prefix}/auth')
    app.register_blueprint(loads_bp, url_prefix=f'{api_prefix}/loads')
    app.register_blueprint(drivers_bp, url_prefix=f'{api_prefix}/drivers')
    app.register_blueprint(ratings_bp, url_prefix=f'{api_prefix}/ratings')
    app.register_blueprint(notifications_bp, url_prefix=f'{api_prefix}/notifications')
    app.register_blueprint(admin_bp, url_prefix=f'{api_prefix}/admin')
    app.register_blueprint(profile_bp, url_prefix=f'{api_prefix}/profile')

    from truckconnect.cli import register_cli
    register_cli(app)

    with app.app_context():
        from truckconnect import models  # noqa: F401
        if app.config.get('AUTO_CREATE_TABLES'):
            db.create_all()

    from truckconnect.services.scheduler import init_scheduler
    app.extensions['truckconnect_scheduler'] = init_scheduler(app)

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy', 'service': 'truckconnect-backend'}, 200

    return app
