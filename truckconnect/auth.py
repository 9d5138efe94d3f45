"""
Credential helpers: password hashing, JWT issuance/verification and the
route decorators that resolve the calling identity.
"""
import jwt
import bcrypt
from datetime import datetime, timezone
from functools import wraps
from flask import request, jsonify, current_app, g

from truckconnect import db


def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def generate_token(user_id: str, role: str) -> str:
    """Generate JWT token with user id and role"""
    now = datetime.now(timezone.utc)
    payload = {
        'user_id': user_id,
        'role': role,
        'exp': now + current_app.config['JWT_ACCESS_TOKEN_EXPIRES'],
        'iat': now,
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET_KEY'],
        algorithm=current_app.config['JWT_ALGORITHM']
    )


def decode_token(token: str) -> dict:
    """Decode and verify JWT token"""
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET_KEY'],
            algorithms=[current_app.config['JWT_ALGORITHM']]
        )
    except jwt.ExpiredSignatureError:
        raise ValueError('Token has expired')
    except jwt.InvalidTokenError:
        raise ValueError('Token is not valid')


def _unauthorized(message):
    return jsonify({'error': message, 'kind': 'Unauthorized'}), 401


def require_auth(f):
    """Decorator to require authentication for routes.

    Resolves the bearer token to ``{id, role}`` and loads the user into
    ``g.current_user``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from truckconnect.models import User

        auth_header = request.headers.get('Authorization')
        if not auth_header:
            return _unauthorized('No token, authorization denied')

        try:
            # Extract token from "Bearer <token>"
            token = auth_header.split(' ')[1] if ' ' in auth_header else auth_header
            payload = decode_token(token)
            user_id = payload['user_id']
        except (ValueError, IndexError, KeyError) as e:
            return _unauthorized(str(e) or 'Token is not valid')

        user = db.session.get(User, user_id)
        if not user:
            return _unauthorized('User not found')

        # Attach user info to request
        request.user_id = user.id
        request.user_role = user.role
        g.current_user = user

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Decorator to require specific role(s) for routes"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(request, 'user_role'):
                return _unauthorized('Authentication required')

            if request.user_role not in roles:
                return jsonify({
                    'error': 'Access denied: {} only'.format(' or '.join(roles)),
                    'kind': 'ForbiddenError',
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
