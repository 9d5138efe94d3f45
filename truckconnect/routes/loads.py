"""
Load API routes. Business rules live in truckconnect.services.lifecycle;
failures surface as TruckConnectError and are rendered by the app handlers.
"""
from flask import Blueprint, jsonify, g

from truckconnect.auth import require_auth, require_role
from truckconnect.services import lifecycle
from truckconnect.utils import json_body

loads_bp = Blueprint('loads', __name__)


@loads_bp.route('', methods=['POST'])
@require_auth
@require_role('customer')
def create_load():
    """
    Create a load
    POST /api/loads
    Body: {"source", "destination", "loadType", "quantity", "estimatedFare",
           "description"?, "estimatedDeliveryDate"?}
    """
    load = lifecycle.create_load(g.current_user, json_body())
    return jsonify({'success': True, 'load': lifecycle.load_for_owner(load)}), 201


@loads_bp.route('', methods=['GET'])
@require_auth
@require_role('customer')
def list_own_loads():
    return jsonify({'success': True, 'loads': lifecycle.list_customer_loads(g.current_user)}), 200


@loads_bp.route('/available', methods=['GET'])
@require_auth
@require_role('driver')
def list_available_loads():
    """Pending loads with no assigned driver, newest first."""
    return jsonify({'success': True, 'loads': lifecycle.list_available_loads(g.current_user)}), 200


@loads_bp.route('/assigned', methods=['GET'])
@require_auth
@require_role('driver')
def list_assigned_loads():
    """The driver's assigned and completed loads with customer contact details."""
    return jsonify({'success': True, 'loads': lifecycle.list_driver_loads(g.current_user)}), 200


@loads_bp.route('/<load_id>', methods=['GET'])
@require_auth
def get_load(load_id):
    return jsonify({'success': True, 'load': lifecycle.get_load(load_id, g.current_user)}), 200


@loads_bp.route('/<load_id>/apply', methods=['POST'])
@require_auth
@require_role('driver')
def apply_to_load(load_id):
    load = lifecycle.apply_to_load(load_id, g.current_user)
    return jsonify({
        'success': True,
        'message': 'Application submitted successfully',
        'load': load.to_dict(include_applicants=False),
    }), 200


@loads_bp.route('/<load_id>/assign/<driver_id>', methods=['PUT'])
@require_auth
@require_role('customer')
def assign_driver(load_id, driver_id):
    load = lifecycle.assign_driver(load_id, g.current_user, driver_id)
    return jsonify({
        'success': True,
        'message': 'Load assigned successfully',
        'load': lifecycle.load_for_owner(load),
    }), 200


@loads_bp.route('/<load_id>', methods=['PUT'])
@require_auth
@require_role('customer')
def update_load_status(load_id):
    """
    Complete or cancel a load
    PUT /api/loads/<id>
    Body: {"status": "completed" | "cancelled"}
    """
    load = lifecycle.update_load_status(load_id, g.current_user, json_body().get('status'))
    return jsonify({'success': True, 'load': lifecycle.load_for_owner(load)}), 200


@loads_bp.route('/<load_id>/complete', methods=['PUT'])
@require_auth
@require_role('customer')
def complete_load(load_id):
    load = lifecycle.complete_load(load_id, g.current_user)
    return jsonify({
        'success': True,
        'message': 'Load marked as completed',
        'load': lifecycle.load_for_owner(load),
    }), 200


@loads_bp.route('/<load_id>/cancel', methods=['PUT'])
@require_auth
@require_role('customer')
def cancel_load(load_id):
    load = lifecycle.cancel_load(load_id, g.current_user)
    return jsonify({
        'success': True,
        'message': 'Load cancelled',
        'load': lifecycle.load_for_owner(load),
    }), 200


@loads_bp.route('/<load_id>/edit', methods=['PUT'])
@require_auth
@require_role('customer')
def edit_load(load_id):
    """Edit the details of a pending load."""
    load = lifecycle.edit_load(load_id, g.current_user, json_body())
    return jsonify({'success': True, 'load': lifecycle.load_for_owner(load)}), 200


@loads_bp.route('/<load_id>/applicants', methods=['GET'])
@require_auth
@require_role('customer')
def get_applicants(load_id):
    """Applicants with ratings refreshed from the live driver profiles."""
    return jsonify({
        'success': True,
        'applicants': lifecycle.get_applicants(load_id, g.current_user),
    }), 200
