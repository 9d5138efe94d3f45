"""
In-app notification inbox routes.
"""
from flask import Blueprint, jsonify, request

from truckconnect.auth import require_auth
from truckconnect.services import notifications

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('', methods=['GET'])
@require_auth
def list_notifications():
    """Latest notifications for the caller plus the unread count."""
    items, unread = notifications.list_notifications(request.user_id)
    return jsonify({'success': True, 'notifications': items, 'unreadCount': unread}), 200


@notifications_bp.route('/unread-count', methods=['GET'])
@require_auth
def unread_count():
    return jsonify({'success': True, 'count': notifications.unread_count(request.user_id)}), 200


@notifications_bp.route('/<notification_id>/read', methods=['PUT'])
@require_auth
def mark_read(notification_id):
    notification = notifications.mark_read(request.user_id, notification_id)
    return jsonify({'success': True, 'notification': notification.to_dict()}), 200


@notifications_bp.route('/read-all', methods=['PUT'])
@require_auth
def mark_all_read():
    updated = notifications.mark_all_read(request.user_id)
    return jsonify({'success': True, 'message': 'All notifications marked as read', 'updated': updated}), 200


@notifications_bp.route('/<notification_id>', methods=['DELETE'])
@require_auth
def delete_notification(notification_id):
    notifications.delete_notification(request.user_id, notification_id)
    return jsonify({'success': True, 'message': 'Notification deleted'}), 200


@notifications_bp.route('', methods=['DELETE'])
@require_auth
def delete_all_notifications():
    deleted = notifications.delete_all(request.user_id)
    return jsonify({'success': True, 'message': 'All notifications deleted', 'deleted': deleted}), 200
