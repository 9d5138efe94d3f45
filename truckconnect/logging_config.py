"""
Logging configuration
Unified log format with the request id of the current request attached
"""
import logging
import sys

from flask import has_request_context, request

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RequestIdFilter(logging.Filter):
    """Attach the X-Request-ID of the active request (or '-') to every record."""

    def filter(self, record):
        if has_request_context():
            record.request_id = request.environ.get('request_id', '-')
        else:
            record.request_id = '-'
        return True


def configure_logging(app):
    """
    Configure the root logger for the application

    Args:
        app: Flask application, LOG_LEVEL is read from its config
    """
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not any(getattr(h, '_truckconnect', False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler.addFilter(RequestIdFilter())
        handler._truckconnect = True
        root_logger.addHandler(handler)

    # Quieten noisy third-party loggers
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('apscheduler').setLevel(logging.WARNING)
