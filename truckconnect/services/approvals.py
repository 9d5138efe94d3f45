"""
Admin approval workflow for driver registrations.

``pending -> accepted`` or ``pending -> rejected`` (reason required).
Both are one-shot: a reviewed driver cannot be reviewed again.
"""
import logging

from sqlalchemy import update

from truckconnect import db
from truckconnect.errors import ValidationError, NotFoundError, InvalidStateError
from truckconnect.models import Driver, DRIVER_STATUSES, utcnow
from truckconnect.services import notifications

logger = logging.getLogger(__name__)

STATUS_FILTERS = ('all',) + DRIVER_STATUSES


def list_drivers(status='all'):
    status = (status or 'all').lower()
    if status not in STATUS_FILTERS:
        raise ValidationError('status must be one of: {}'.format(', '.join(STATUS_FILTERS)))
    query = Driver.query
    if status != 'all':
        query = query.filter(Driver.status == status)
    return query.order_by(Driver.created_at.desc()).all()


def _review(driver_id, admin, new_status, reason=None):
    driver = db.session.get(Driver, driver_id)
    if not driver:
        raise NotFoundError('Driver not found')
    if driver.status != 'pending':
        raise InvalidStateError('Driver has already been {}'.format(driver.status))

    now = utcnow()
    result = db.session.execute(
        update(Driver)
        .where(Driver.id == driver_id, Driver.status == 'pending')
        .values(status=new_status, rejection_reason=reason, reviewed_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise InvalidStateError('Driver has already been reviewed')
    db.session.commit()

    logger.info("Admin %s marked driver %s as %s", admin.id, driver_id, new_status)
    notifications.notify_driver_reviewed(driver)
    return driver


def accept_driver(driver_id, admin):
    return _review(driver_id, admin, 'accepted')


def reject_driver(driver_id, admin, reason):
    reason = (reason or '').strip() if isinstance(reason, str) else ''
    if not reason:
        raise ValidationError('Rejection reason is required')
    return _review(driver_id, admin, 'rejected', reason=reason)
