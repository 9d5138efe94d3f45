"""
Error taxonomy for TruckConnect.

Services raise these exceptions; the handlers registered here turn them into
``{"error": <message>, "kind": <kind>}`` JSON responses so that route
functions never build error responses for business-rule failures themselves.
"""
import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class TruckConnectError(Exception):
    """Base class for all expected, client-visible failures."""
    status_code = 400
    kind = 'Error'
    default_message = 'Request failed'

    def __init__(self, message=None, **context):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.context = context

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class ValidationError(TruckConnectError):
    """Missing or malformed input."""
    status_code = 400
    kind = 'ValidationError'
    default_message = 'Invalid request'


class NotFoundError(TruckConnectError):
    status_code = 404
    kind = 'NotFoundError'
    default_message = 'Not found'


class Unauthorized(TruckConnectError):
    """No credential, or a credential that does not verify."""
    status_code = 401
    kind = 'Unauthorized'
    default_message = 'Unauthorized'


class ForbiddenError(TruckConnectError):
    status_code = 403
    kind = 'ForbiddenError'
    default_message = 'Access denied'


class InvalidStateError(TruckConnectError):
    """Operation is not valid for the entity's current status."""
    status_code = 400
    kind = 'InvalidStateError'
    default_message = 'Operation not allowed in the current state'


class ConflictError(TruckConnectError):
    """A cross-entity invariant would be violated."""
    status_code = 400
    kind = 'ConflictError'
    default_message = 'Conflicting request'


class DuplicateApplicationError(ConflictError):
    kind = 'DuplicateApplicationError'
    default_message = 'You have already applied for this load'


def register_error_handlers(app):
    """Render TruckConnectError subclasses and unexpected failures as JSON."""

    @app.errorhandler(TruckConnectError)
    def handle_truckconnect_error(error):
        if error.status_code >= 500:
            logger.error('%s on %s: %s', error.kind, request.path, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(429)
    def ratelimit_handler(e):
        retry_after = e.get_headers().get("Retry-After") if hasattr(e, "get_headers") else None
        retry_after_seconds = int(retry_after) if retry_after else 60
        return jsonify({
            'error': 'Too many requests. Please try again later.',
            'kind': 'RateLimited',
            'retry_after': retry_after_seconds,
        }), 429

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({'error': e.description, 'kind': e.name.replace(' ', '')}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        from truckconnect import db
        db.session.rollback()
        logger.exception(
            'Unhandled error during %s %s (endpoint=%s, view_args=%s)',
            request.method, request.path, request.endpoint, request.view_args,
        )
        return jsonify({'error': 'Server error', 'kind': 'ServerError'}), 500
