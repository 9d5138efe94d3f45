"""
Rating API routes for TruckConnect.
"""
from flask import Blueprint, jsonify, g

from truckconnect import db
from truckconnect.auth import require_auth, require_role
from truckconnect.models import Driver, User
from truckconnect.services import ratings
from truckconnect.utils import json_body, require_fields

ratings_bp = Blueprint('ratings', __name__)


@ratings_bp.route('/customer-rate-driver', methods=['POST'])
@require_auth
@require_role('customer')
def customer_rate_driver():
    """
    Customer rates the driver of a completed load.
    Body JSON: loadId (str), rating (int 1-5), review (str, optional)
    """
    data = json_body()
    require_fields(data, ('loadId', 'rating'))
    record = ratings.rate_driver(data['loadId'], g.current_user, data['rating'], data.get('review'))
    return jsonify({
        'success': True,
        'message': 'Rating submitted successfully',
        'rating': record.to_dict(),
    }), 200


@ratings_bp.route('/driver-rate-customer', methods=['POST'])
@require_auth
@require_role('driver')
def driver_rate_customer():
    """
    Assigned driver rates the customer of a completed load.
    Body JSON: loadId (str), rating (int 1-5), review (str, optional)
    """
    data = json_body()
    require_fields(data, ('loadId', 'rating'))
    record = ratings.rate_customer(data['loadId'], g.current_user, data['rating'], data.get('review'))
    return jsonify({
        'success': True,
        'message': 'Rating submitted successfully',
        'rating': record.to_dict(),
    }), 200


@ratings_bp.route('/load/<load_id>', methods=['GET'])
@require_auth
def get_load_rating(load_id):
    record = ratings.get_load_rating(load_id)
    return jsonify({'success': True, 'rating': record.to_dict(include_parties=True)}), 200


@ratings_bp.route('/driver/<driver_id>', methods=['GET'])
def get_driver_ratings(driver_id):
    """Public: ratings a driver received from customers, newest first."""
    records = ratings.driver_ratings(driver_id)
    driver = db.session.get(Driver, driver_id)
    return jsonify({
        'success': True,
        'averageRating': driver.average_rating or 0.0,
        'totalRatings': driver.total_ratings or 0,
        'ratings': [r.to_dict(include_parties=True) for r in records],
    }), 200


@ratings_bp.route('/customer/<customer_id>', methods=['GET'])
def get_customer_ratings(customer_id):
    """Public: ratings a customer received from drivers, newest first."""
    records = ratings.customer_ratings(customer_id)
    customer = db.session.get(User, customer_id)
    return jsonify({
        'success': True,
        'averageRating': customer.average_rating or 0.0,
        'totalRatings': customer.total_ratings or 0,
        'ratings': [r.to_dict(include_parties=True) for r in records],
    }), 200
