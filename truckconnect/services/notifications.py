"""
Notification dispatcher.

In-app notifications are written after the lifecycle transaction has
committed, so nothing in here can undo or fail a business operation:
every public ``notify_*`` helper logs and swallows its own errors.
"""
import logging

from flask import current_app
from sqlalchemy import func

from truckconnect import db
from truckconnect.errors import NotFoundError
from truckconnect.models import Notification, NOTIFICATION_TYPES
from truckconnect.services import email as mailer

logger = logging.getLogger(__name__)


def notify(user_id, type, title, message, load_id=None):
    """Create one in-app notification. Returns the row, or None on failure."""
    if type not in NOTIFICATION_TYPES:
        logger.error("Unknown notification type %r for user %s", type, user_id)
        return None
    try:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            load_id=load_id,
        )
        db.session.add(notification)
        db.session.commit()
        return notification
    except Exception:
        db.session.rollback()
        logger.exception("Failed to create %s notification for user %s (load=%s)", type, user_id, load_id)
        return None


# ---------------------------------------------------------------------------
# Lifecycle events
# ---------------------------------------------------------------------------
def notify_load_application(load, driver):
    """A driver applied: tell the owning customer."""
    try:
        customer = load.customer
        notify(
            customer.id, 'load_application', 'New Driver Application',
            '{} has applied for your load from {} to {}'.format(driver.name, load.source, load.destination),
            load_id=load.id,
        )
        mailer.send_load_application_email(customer.email, customer.name, driver.name, load.to_dict(False))
    except Exception:
        logger.exception("load_application dispatch failed for load %s", load.id)


def notify_load_assigned(load, driver):
    """The customer assigned the load: tell the driver."""
    try:
        customer = load.customer
        notify(
            driver.user_id, 'load_assigned', 'Load Assigned',
            'You have been assigned a load from {} to {}'.format(load.source, load.destination),
            load_id=load.id,
        )
        mailer.send_load_assigned_email(driver.email, driver.name, customer.name, load.to_dict(False))
    except Exception:
        logger.exception("load_assigned dispatch failed for load %s", load.id)


def notify_load_completed(load, driver):
    """Tell both parties the load is completed and prompt them to rate."""
    try:
        customer = load.customer
        summary = load.to_dict(False)
        if driver is not None:
            notify(
                driver.user_id, 'load_completed', 'Load Completed',
                'Load from {} to {} has been marked as completed. Please rate the customer.'.format(
                    load.source, load.destination),
                load_id=load.id,
            )
            mailer.send_load_completed_email(driver.email, driver.name, summary, is_driver=True)
        notify(
            customer.id, 'load_completed', 'Load Completed',
            'Your load from {} to {} has been completed. Please rate the driver.'.format(
                load.source, load.destination),
            load_id=load.id,
        )
        mailer.send_load_completed_email(customer.email, customer.name, summary, is_driver=False)
    except Exception:
        logger.exception("load_completed dispatch failed for load %s", load.id)


def notify_new_rating(recipient, rater_name, rating, review, load_id):
    """*recipient* is the rated User."""
    try:
        notify(
            recipient.id, 'new_rating', 'New Rating Received',
            '{} rated you {} stars'.format(rater_name, rating),
            load_id=load_id,
        )
        mailer.send_new_rating_email(recipient.email, recipient.name, rater_name, rating, review)
    except Exception:
        logger.exception("new_rating dispatch failed for user %s", getattr(recipient, 'id', None))


# ---------------------------------------------------------------------------
# Driver account events
# ---------------------------------------------------------------------------
def notify_driver_reviewed(driver):
    try:
        approved = driver.status == 'accepted'
        if approved:
            notify(driver.user_id, 'driver_approved', 'Registration Approved',
                   'Your driver account has been approved. You can now apply for loads.')
        else:
            notify(driver.user_id, 'driver_rejected', 'Registration Rejected',
                   'Your driver registration was rejected: {}'.format(driver.rejection_reason))
        mailer.send_driver_reviewed_email(driver.email, driver.name, approved, driver.rejection_reason)
    except Exception:
        logger.exception("driver review dispatch failed for driver %s", driver.id)


def notify_document_expiry(driver, expiring):
    """*expiring* is a list of (document key, expiry date) pairs."""
    try:
        listing = ', '.join('{} ({})'.format(key, expiry.isoformat()) for key, expiry in expiring)
        created = notify(
            driver.user_id, 'document_expiry', 'Documents Expiring Soon',
            'The following documents expire soon: {}'.format(listing),
        )
        mailer.send_document_expiry_email(
            driver.email, driver.name,
            [(key, expiry.isoformat()) for key, expiry in expiring],
        )
        return created is not None
    except Exception:
        logger.exception("document_expiry dispatch failed for driver %s", driver.id)
        return False


# ---------------------------------------------------------------------------
# Inbox queries
# ---------------------------------------------------------------------------
def unread_count(user_id):
    return db.session.query(func.count(Notification.id)).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    ).scalar() or 0


def list_notifications(user_id, limit=None):
    """Latest notifications for a user, newest first, plus the unread count."""
    limit = limit or current_app.config.get('NOTIFICATION_LIST_LIMIT', 50)
    rows = (
        Notification.query
        .filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .all()
    )
    return [n.to_dict() for n in rows], unread_count(user_id)


def _owned(user_id, notification_id):
    notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if not notification:
        raise NotFoundError('Notification not found')
    return notification


def mark_read(user_id, notification_id):
    notification = _owned(user_id, notification_id)
    notification.mark_read()
    db.session.commit()
    return notification


def mark_all_read(user_id):
    updated = Notification.query.filter_by(user_id=user_id, is_read=False).update(
        {Notification.is_read: True}, synchronize_session=False
    )
    db.session.commit()
    return updated


def delete_notification(user_id, notification_id):
    notification = _owned(user_id, notification_id)
    db.session.delete(notification)
    db.session.commit()


def delete_all(user_id):
    deleted = Notification.query.filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.commit()
    return deleted
