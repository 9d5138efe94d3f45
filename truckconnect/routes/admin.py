"""
Admin API routes: driver registration review.
"""
from flask import Blueprint, jsonify, request, g

from truckconnect.auth import require_auth, require_role
from truckconnect.services import approvals
from truckconnect.utils import json_body

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/drivers', methods=['GET'])
@require_auth
@require_role('admin')
def list_drivers():
    """
    List drivers
    GET /api/admin/drivers?status=all|pending|accepted|rejected
    """
    drivers = approvals.list_drivers(request.args.get('status', 'all'))
    return jsonify({'success': True, 'drivers': [d.to_dict() for d in drivers]}), 200


@admin_bp.route('/drivers/<driver_id>/accept', methods=['PUT'])
@require_auth
@require_role('admin')
def accept_driver(driver_id):
    driver = approvals.accept_driver(driver_id, g.current_user)
    return jsonify({'success': True, 'message': 'Driver accepted', 'driver': driver.to_dict()}), 200


@admin_bp.route('/drivers/<driver_id>/reject', methods=['PUT'])
@require_auth
@require_role('admin')
def reject_driver(driver_id):
    """
    Reject a pending driver
    Body: {"reason": "..."}
    """
    driver = approvals.reject_driver(driver_id, g.current_user, json_body().get('reason'))
    return jsonify({'success': True, 'message': 'Driver rejected', 'driver': driver.to_dict()}), 200
