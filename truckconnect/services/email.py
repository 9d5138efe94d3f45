"""
Email transport for TruckConnect.

Resend when RESEND_API_KEY is configured, otherwise a logged dev-mode no-op.

IMPORTANT: No function in this module should ever raise an exception.
All errors are caught and logged so that an email failure never takes down
a lifecycle or rating operation.

Email sending is performed on a background thread (unless EMAIL_ASYNC is
off) so that request handlers are never blocked by network I/O.
"""

import logging
import threading

from flask import current_app

from truckconnect.utils import truncate_string
from truckconnect.services.email_templates import (
    load_application_html,
    load_assigned_html,
    load_completed_html,
    new_rating_html,
    driver_reviewed_html,
    document_expiry_html,
)

logger = logging.getLogger(__name__)


def _transport_settings():
    """Snapshot the config values the sender needs (threads have no app context)."""
    cfg = current_app.config
    return {
        'api_key': cfg.get('RESEND_API_KEY', ''),
        'from': '{} <{}>'.format(cfg.get('EMAIL_FROM_NAME', 'TruckConnect'), cfg.get('EMAIL_FROM')),
    }


def _send_email_sync(settings, to_email, subject, html_content):
    """Send an email synchronously. Returns the provider id or None. Never raises."""
    try:
        if not settings['api_key']:
            logger.info(
                "[DEV] Email to %s: %s | %s",
                to_email, subject, truncate_string(html_content, 120),
            )
            return None

        import resend
        resend.api_key = settings['api_key']

        response = resend.Emails.send({
            "from": settings['from'],
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        })
        logger.info("Email sent via Resend to %s (id: %s)", to_email, response.get("id"))
        return response.get("id")
    except Exception:
        logger.exception("Failed to send email to %s", to_email)
        return None


def send_email(to_email, subject, html_content):
    """Send an email, on a background thread when EMAIL_ASYNC is set.

    Returns immediately in async mode. Never raises.
    """
    try:
        if not to_email:
            return None
        settings = _transport_settings()
        if not current_app.config.get('EMAIL_ASYNC', True):
            return _send_email_sync(settings, to_email, subject, html_content)

        thread = threading.Thread(
            target=_send_email_sync,
            args=(settings, to_email, subject, html_content),
            daemon=True,
        )
        thread.start()
        logger.debug("Email queued (async) to %s: %s", to_email, subject)
    except Exception:
        logger.exception("Failed to queue email to %s", to_email)
    return None


def _dashboard_url():
    return current_app.config.get('DASHBOARD_URL', 'http://localhost:5173')


# ---------------------------------------------------------------------------
# Load lifecycle
# ---------------------------------------------------------------------------
def send_load_application_email(to_email, customer_name, driver_name, load):
    """Tell the customer a driver applied. Never raises."""
    try:
        subject = "New Driver Application - {} to {}".format(load['source'], load['destination'])
        html = load_application_html(customer_name, driver_name, load, _dashboard_url())
        return send_email(to_email, subject, html)
    except Exception:
        logger.exception("Failed in send_load_application_email for %s", to_email)
        return None


def send_load_assigned_email(to_email, driver_name, customer_name, load):
    """Tell the driver they were assigned. Never raises."""
    try:
        subject = "Load Assigned - {} to {}".format(load['source'], load['destination'])
        html = load_assigned_html(driver_name, customer_name, load, _dashboard_url())
        return send_email(to_email, subject, html)
    except Exception:
        logger.exception("Failed in send_load_assigned_email for %s", to_email)
        return None


def send_load_completed_email(to_email, user_name, load, is_driver):
    """Never raises."""
    try:
        subject = "Load Completed - {} to {}".format(load['source'], load['destination'])
        html = load_completed_html(user_name, load, is_driver, _dashboard_url())
        return send_email(to_email, subject, html)
    except Exception:
        logger.exception("Failed in send_load_completed_email for %s", to_email)
        return None


def send_new_rating_email(to_email, user_name, rater_name, rating, review):
    """Never raises."""
    try:
        subject = "New Rating Received - {} Stars".format(rating)
        html = new_rating_html(user_name, rater_name, rating, review, _dashboard_url())
        return send_email(to_email, subject, html)
    except Exception:
        logger.exception("Failed in send_new_rating_email for %s", to_email)
        return None


# ---------------------------------------------------------------------------
# Driver account
# ---------------------------------------------------------------------------
def send_driver_reviewed_email(to_email, driver_name, approved, reason=None):
    """Never raises."""
    try:
        subject = "Your TruckConnect driver account is approved" if approved else \
            "Update on your TruckConnect driver registration"
        html = driver_reviewed_html(driver_name, approved, reason, _dashboard_url())
        return send_email(to_email, subject, html)
    except Exception:
        logger.exception("Failed in send_driver_reviewed_email for %s", to_email)
        return None


def send_document_expiry_email(to_email, driver_name, expiring):
    """Never raises."""
    try:
        html = document_expiry_html(driver_name, expiring, _dashboard_url())
        return send_email(to_email, "Your documents are expiring soon", html)
    except Exception:
        logger.exception("Failed in send_document_expiry_email for %s", to_email)
        return None
