from flask import Blueprint, jsonify, g

from truckconnect.auth import generate_token, require_auth
from truckconnect.extensions import limiter
from truckconnect.services import accounts
from truckconnect.utils import json_body

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("10 per minute")
def register():
    """
    Register a new customer
    POST /api/auth/register
    Body: {"name", "email", "password", "phone"}
    """
    user = accounts.register_customer(json_body())
    token = generate_token(user.id, user.role)
    return jsonify({
        'success': True,
        'message': 'User registered successfully',
        'token': token,
        'user': user.to_dict(),
    }), 201


@auth_bp.route('/driver/register', methods=['POST'])
@limiter.limit("10 per minute")
def register_driver():
    """
    Register a new driver (pending admin approval)
    POST /api/auth/driver/register
    Body: {
        "name", "email", "password", "phone", "address", "lorryType", "maxCapacity",
        "documents": {"license": url, "rc": url, "fitness": url, "insurance": url,
                      "medical": url, "allIndiaPermit": url?},
        "documentExpiry": {"license": "YYYY-MM-DD", ...}   (optional)
    }
    """
    user = accounts.register_driver(json_body())
    return jsonify({
        'success': True,
        'message': 'Driver registered successfully. Your account is pending admin approval.',
        'driver': user.driver_profile.to_dict(),
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("20 per minute")
def login():
    """
    Login for customers, drivers and admins
    POST /api/auth/login
    Body: {"email", "password"}
    """
    data = json_body()
    user = accounts.authenticate(data.get('email'), data.get('password'))
    token = generate_token(user.id, user.role)

    payload = user.to_dict()
    if user.driver_profile is not None:
        payload['driver'] = user.driver_profile.to_dict()
    return jsonify({
        'success': True,
        'message': 'Login successful',
        'token': token,
        'user': payload,
    }), 200


@auth_bp.route('/me', methods=['GET'])
@require_auth
def get_current_user():
    """Get current user info"""
    user = g.current_user
    payload = user.to_dict()
    if user.driver_profile is not None:
        payload['driver'] = user.driver_profile.to_dict()
    return jsonify({'success': True, 'user': payload}), 200
