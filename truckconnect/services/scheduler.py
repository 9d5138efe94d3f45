"""
TruckConnect Background Scheduler

Runs periodic tasks:
- Remind accepted drivers about documents expiring soon (every DOCUMENT_EXPIRY_CHECK_HOURS)

Only starts when ENABLE_SCHEDULER is set to prevent running on multiple instances.
"""

import logging
from datetime import date, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import or_

logger = logging.getLogger(__name__)


def _expiring_documents(driver, limit):
    return sorted(
        ((key, expiry) for key, expiry in driver.document_expiries.items() if expiry and expiry <= limit),
        key=lambda item: item[1],
    )


def send_document_expiry_reminders(app, today=None):
    """Notify accepted drivers whose documents expire within the warning window.

    Documents already past their expiry date are included. A driver who got a
    reminder within the last check interval is skipped. Returns the number of
    drivers notified.
    """
    with app.app_context():
        from truckconnect import db
        from truckconnect.models import Driver, Notification, DOCUMENT_TYPES, utcnow
        from truckconnect.services.notifications import notify_document_expiry

        today = today or date.today()
        limit = today + timedelta(days=app.config.get('DOCUMENT_EXPIRY_WARNING_DAYS', 30))
        recent = utcnow() - timedelta(hours=app.config.get('DOCUMENT_EXPIRY_CHECK_HOURS', 24))

        expiry_columns = [getattr(Driver, f'{prefix}_expiry') for prefix in DOCUMENT_TYPES.values()]
        drivers = Driver.query.filter(
            Driver.status == 'accepted',
            or_(*[column <= limit for column in expiry_columns]),
        ).all()

        count = 0
        for driver in drivers:
            try:
                already_reminded = db.session.query(
                    Notification.query.filter(
                        Notification.user_id == driver.user_id,
                        Notification.type == 'document_expiry',
                        Notification.created_at >= recent,
                    ).exists()
                ).scalar()
                if already_reminded:
                    continue

                expiring = _expiring_documents(driver, limit)
                if expiring and notify_document_expiry(driver, expiring):
                    count += 1
            except Exception:
                logger.exception("Failed to send document expiry reminder for driver %s", driver.id)

        if count:
            logger.info("Scheduler: sent document expiry reminders to %d drivers", count)
        return count


def init_scheduler(app):
    """Initialize and start the background scheduler.

    Only runs if ENABLE_SCHEDULER is set in the app config.
    """
    if not app.config.get('ENABLE_SCHEDULER'):
        logger.info("Scheduler disabled (set ENABLE_SCHEDULER=true to enable)")
        return None

    try:
        scheduler = BackgroundScheduler(daemon=True)

        scheduler.add_job(
            send_document_expiry_reminders,
            "interval",
            hours=app.config.get('DOCUMENT_EXPIRY_CHECK_HOURS', 24),
            args=[app],
            id="send_document_expiry_reminders",
            name="Send document expiry reminders",
        )

        scheduler.start()
        logger.info("Background scheduler started with 1 job")
        return scheduler
    except Exception:
        logger.exception("Failed to start scheduler")
        return None
