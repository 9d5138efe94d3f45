"""
Configuration settings for different environments
"""
import os
import logging
import secrets
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _require_in_production(var_name, default):
    """Return env var value. Outside development, warn loudly if still using default."""
    value = os.environ.get(var_name, '')
    if value:
        return value
    env = os.environ.get('FLASK_ENV', 'development')
    if env not in ('development', 'testing') and default:
        logger.warning(
            '%s is using an insecure default. Set it via environment variable!', var_name
        )
    return default


def _database_url():
    url = os.environ.get('DATABASE_URL', '')
    # Fix postgres:// to postgresql:// for SQLAlchemy 2.x
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url or 'sqlite:///truckconnect.db'


class Config:
    """Base configuration"""
    SECRET_KEY = _require_in_production('SECRET_KEY', 'dev-only-' + secrets.token_hex(16))

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = True

    # JWT Authentication
    JWT_SECRET_KEY = _require_in_production('JWT_SECRET', 'dev-only-' + secrets.token_hex(32))
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_EXPIRES_HOURS', 24)))

    # API
    API_PREFIX = '/api'
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'

    # Email: Resend, or log-only when no key is configured
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY', '')
    EMAIL_FROM = os.environ.get('EMAIL_FROM', 'noreply@truckconnect.in')
    EMAIL_FROM_NAME = os.environ.get('EMAIL_FROM_NAME', 'TruckConnect')
    EMAIL_ASYNC = True
    DASHBOARD_URL = os.environ.get('DASHBOARD_URL', 'http://localhost:5173')

    # Notifications
    NOTIFICATION_LIST_LIMIT = 50

    # Scheduler (document expiry reminders)
    ENABLE_SCHEDULER = os.environ.get('ENABLE_SCHEDULER', '').lower() == 'true'
    DOCUMENT_EXPIRY_WARNING_DAYS = int(os.environ.get('DOCUMENT_EXPIRY_WARNING_DAYS', 30))
    DOCUMENT_EXPIRY_CHECK_HOURS = int(os.environ.get('DOCUMENT_EXPIRY_CHECK_HOURS', 24))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Error monitoring
    SENTRY_DSN = os.environ.get('SENTRY_DSN')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    AUTO_CREATE_TABLES = os.environ.get('AUTO_CREATE_TABLES', '').lower() == 'true'

    # Production-specific settings
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""
    TESTING = True
    DEBUG = False

    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')

    JWT_SECRET_KEY = 'test-jwt-secret'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    # Never talk to the email provider, and send inline so tests are deterministic
    RESEND_API_KEY = ''
    EMAIL_ASYNC = False

    ENABLE_SCHEDULER = False
    LOG_LEVEL = 'WARNING'

    CORS_ORIGINS = ['http://localhost:5173', 'http://localhost:3000']


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
