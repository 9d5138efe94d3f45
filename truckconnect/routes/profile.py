"""
Profile API routes: editing your own details and reading the ratings you
have received.
"""
from flask import Blueprint, jsonify, g

from truckconnect.auth import require_auth, require_role
from truckconnect.services import accounts, ratings
from truckconnect.utils import json_body

profile_bp = Blueprint('profile', __name__)


@profile_bp.route('/user', methods=['PUT'])
@require_auth
def update_user():
    """
    Update name and/or phone
    PUT /api/profile/user
    Body: {"name": str, "phone": str}
    """
    user = accounts.update_user_profile(g.current_user, json_body())
    return jsonify({'success': True, 'user': user.to_dict()}), 200


@profile_bp.route('/driver', methods=['PUT'])
@require_auth
@require_role('driver')
def update_driver():
    """
    Update a driver's contact details and lorry
    PUT /api/profile/driver
    Body: {"name", "phone", "address", "lorryType", "maxCapacity"} (all optional)
    """
    driver = accounts.update_driver_profile(g.current_user, json_body())
    return jsonify({'success': True, 'driver': driver.to_dict()}), 200


@profile_bp.route('/my-ratings', methods=['GET'])
@require_auth
def my_ratings():
    records = ratings.my_ratings(g.current_user)
    return jsonify({
        'success': True,
        'ratings': [r.to_dict(include_parties=True) for r in records],
    }), 200


@profile_bp.route('/rating-breakdown', methods=['GET'])
@require_auth
def rating_breakdown():
    """Star distribution of received ratings, e.g. {"5": 3, "4": 1, ...}"""
    breakdown = ratings.rating_breakdown(g.current_user)
    return jsonify({
        'success': True,
        'breakdown': {str(stars): count for stars, count in breakdown.items()},
    }), 200
