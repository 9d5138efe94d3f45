"""
Driver API routes.
"""
from flask import Blueprint, jsonify, g

from truckconnect.auth import require_auth, require_role
from truckconnect.errors import NotFoundError
from truckconnect.services import accounts
from truckconnect.utils import json_body

drivers_bp = Blueprint('drivers', __name__)


@drivers_bp.route('/profile', methods=['GET'])
@require_auth
@require_role('driver')
def get_profile():
    driver = g.current_user.driver_profile
    if driver is None:
        raise NotFoundError('Driver profile not found')
    return jsonify({'success': True, 'driver': driver.to_dict()}), 200


@drivers_bp.route('/documents', methods=['PUT'])
@require_auth
@require_role('driver')
def update_documents():
    """
    Replace document links and/or expiry dates
    PUT /api/drivers/documents
    Body: {"documents": {"insurance": url, ...}, "documentExpiry": {"insurance": "YYYY-MM-DD"}}
    """
    driver = accounts.update_driver_documents(g.current_user, json_body())
    return jsonify({'success': True, 'driver': driver.to_dict()}), 200
