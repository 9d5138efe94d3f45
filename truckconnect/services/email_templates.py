"""
HTML email templates for TruckConnect.

Every public function returns a complete HTML string ready for sending via
``send_email`` in ``truckconnect.services.email``.

All styles are inlined for email-client compatibility. No external
resources (fonts, images, scripts) are referenced.
"""

from html import escape, unescape


def _esc(value):
    """Escape text for HTML exactly once.

    Text that came in through a request body is already entity-escaped by
    ``sanitize_dict``, so it is unescaped first.
    """
    return escape(unescape(value))


# ---------------------------------------------------------------------------
# Shared layout helpers
# ---------------------------------------------------------------------------

def _header():
    return (
        '<div style="text-align:center;margin-bottom:30px;">'
        '<h1 style="color:#d97706;font-size:28px;margin:0;font-family:Arial,sans-serif;font-weight:700;">TruckConnect</h1>'
        '<p style="color:#6b7280;margin:5px 0 0;font-size:14px;">Loads and lorries, matched</p>'
        '</div>'
    )


def _footer():
    return (
        '<div style="text-align:center;margin-top:30px;padding-top:20px;border-top:1px solid #e5e7eb;color:#9ca3af;font-size:12px;line-height:1.6;">'
        '<p style="margin:0;">This is an automated email from TruckConnect. Please do not reply.</p>'
        '</div>'
    )


def _wrap(body_html):
    """Wrap inner content in the common email shell (background, card, header, footer)."""
    return (
        '<!DOCTYPE html>'
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1.0">'
        '<title>TruckConnect</title></head>'
        '<body style="margin:0;padding:0;background-color:#f3f4f6;">'
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:40px 20px;">'
        + _header()
        + '<div style="background:#ffffff;border-radius:12px;padding:30px;box-shadow:0 1px 3px rgba(0,0,0,0.1);">'
        + body_html
        + '</div>'
        + _footer()
        + '</div></body></html>'
    )


def _detail_table(rows, accent='#fef3c7'):
    """Tinted detail box.  *rows* is a list of (label, value) tuples."""
    inner = ''
    for label, value in rows:
        inner += (
            '<tr>'
            '<td style="padding:6px 0;color:#6b7280;font-size:14px;">{label}</td>'
            '<td style="padding:6px 0;color:#111827;font-size:14px;font-weight:600;text-align:right;">{value}</td>'
            '</tr>'
        ).format(label=_esc(str(label)), value=_esc(str(value)))
    return (
        '<div style="background:{accent};border-radius:8px;padding:15px 20px;margin:20px 0;">'
        '<table style="width:100%;border-collapse:collapse;">'.format(accent=accent)
        + inner
        + '</table></div>'
    )


def _button(url, label, color='#d97706'):
    return (
        '<div style="text-align:center;margin:28px 0 12px;">'
        '<a href="{url}" style="display:inline-block;background:{color};color:#ffffff;'
        'text-decoration:none;padding:12px 28px;border-radius:6px;font-size:15px;'
        'font-weight:600;">'.format(url=_esc(str(url)), color=color)
        + _esc(str(label))
        + '</a></div>'
    )


def _greeting(title, name, color):
    return (
        '<h2 style="color:{color};margin:0 0 12px;font-size:22px;">{title}</h2>'
        '<p style="color:#4b5563;line-height:1.6;">Hello {name},</p>'
    ).format(color=color, title=_esc(title), name=_esc(str(name)) if name else 'there')


def _load_rows(load):
    return [
        ('Route', '{} → {}'.format(load['source'], load['destination'])),
        ('Load Type', load['loadType']),
        ('Quantity', '{} tons'.format(load['quantity'])),
        ('Estimated Fare', '₹{}'.format(load['estimatedFare'])),
    ]


# ---------------------------------------------------------------------------
# Load lifecycle
# ---------------------------------------------------------------------------

def load_application_html(customer_name, driver_name, load, dashboard_url):
    """A driver applied to the customer's load."""
    body = _greeting('New Driver Application', customer_name, '#d97706')
    body += '<p style="color:#4b5563;line-height:1.6;"><strong>{}</strong> has applied for your load:</p>'.format(
        _esc(str(driver_name)))
    body += _detail_table(_load_rows(load))
    body += '<p style="color:#4b5563;line-height:1.6;">Review the driver\'s details and assign the load from your dashboard.</p>'
    body += _button(dashboard_url, 'View Dashboard')
    return _wrap(body)


def load_assigned_html(driver_name, customer_name, load, dashboard_url):
    """The customer picked this driver."""
    body = _greeting('Load Assigned!', driver_name, '#10b981')
    body += '<p style="color:#4b5563;line-height:1.6;"><strong>{}</strong> has assigned you a load:</p>'.format(
        _esc(str(customer_name)))
    body += _detail_table(_load_rows(load), accent='#d1fae5')
    body += _button(dashboard_url, 'View Dashboard', color='#10b981')
    return _wrap(body)


def load_completed_html(user_name, load, is_driver, dashboard_url):
    body = _greeting('Load Completed!', user_name, '#3b82f6')
    body += '<p style="color:#4b5563;line-height:1.6;">The following load has been marked as completed:</p>'
    body += _detail_table(_load_rows(load), accent='#dbeafe')
    prompt = 'Please rate your experience with the customer.' if is_driver else \
        'Please rate your experience with the driver.'
    body += '<p style="color:#4b5563;line-height:1.6;">{}</p>'.format(prompt)
    body += _button(dashboard_url, 'Rate Now', color='#3b82f6')
    return _wrap(body)


def new_rating_html(user_name, rater_name, rating, review, dashboard_url):
    body = _greeting('New Rating Received!', user_name, '#f59e0b')
    body += '<p style="color:#4b5563;line-height:1.6;"><strong>{}</strong> has rated you:</p>'.format(
        _esc(str(rater_name)))
    rows = [('Rating', '★' * int(rating) + '☆' * (5 - int(rating)))]
    if review:
        rows.append(('Review', review))
    body += _detail_table(rows)
    body += _button(dashboard_url, 'View Profile', color='#f59e0b')
    return _wrap(body)


# ---------------------------------------------------------------------------
# Driver account
# ---------------------------------------------------------------------------

def driver_reviewed_html(driver_name, approved, reason, dashboard_url):
    if approved:
        body = _greeting('You\'re Approved!', driver_name, '#10b981')
        body += ('<p style="color:#4b5563;line-height:1.6;">Your driver account has been approved. '
                 'You can now browse available loads and apply.</p>')
        body += _button(dashboard_url, 'Find Loads', color='#10b981')
    else:
        body = _greeting('Registration Update', driver_name, '#dc2626')
        body += ('<p style="color:#4b5563;line-height:1.6;">Unfortunately your driver registration '
                 'was not approved.</p>')
        body += _detail_table([('Reason', reason or 'Not specified')], accent='#fee2e2')
    return _wrap(body)


def document_expiry_html(driver_name, expiring, dashboard_url):
    """*expiring* is a list of (document label, expiry date string)."""
    body = _greeting('Documents Expiring Soon', driver_name, '#dc2626')
    body += ('<p style="color:#4b5563;line-height:1.6;">The following documents expire soon. '
             'Upload renewed copies to keep applying for loads.</p>')
    body += _detail_table(expiring, accent='#fee2e2')
    body += _button(dashboard_url, 'Update Documents', color='#dc2626')
    return _wrap(body)
