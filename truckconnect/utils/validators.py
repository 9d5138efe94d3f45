"""
Validation utilities
"""
import re
from datetime import date, datetime

from truckconnect.errors import ValidationError


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_phone(phone):
    """
    Validate phone number format (India mobile, optional +91 / 0 prefix)

    Args:
        phone (str): Phone number to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not phone:
        return False

    # Remove common separators
    cleaned = re.sub(r'[\s\-\(\)\.]', '', str(phone))

    pattern = r'^(\+?91|0)?[6-9]\d{9}$'
    return bool(re.match(pattern, cleaned))


def require_fields(data, fields):
    """Raise ValidationError naming the first missing/blank field."""
    missing = [f for f in fields if data.get(f) in (None, '')]
    if missing:
        raise ValidationError('Please provide all required fields: {}'.format(', '.join(missing)))


def positive_number(value, field):
    """Coerce ``value`` to float and require it to be strictly positive."""
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a number')
    if number != number or number <= 0:
        raise ValidationError(f'{field} must be greater than 0')
    return number


def parse_date(value, field):
    """
    Parse an ISO date (or datetime) string to a date object

    Returns None for empty input, raises ValidationError if unparsable.
    """
    if value in (None, ''):
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).date()
    except ValueError:
        raise ValidationError(f'{field} must be an ISO date (YYYY-MM-DD)')


def star_rating(value):
    """A rating must be an integer from 1 to 5."""
    if isinstance(value, bool) or value is None:
        raise ValidationError('Rating must be an integer between 1 and 5')
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError('Rating must be an integer between 1 and 5')
    try:
        stars = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Rating must be an integer between 1 and 5')
    if stars < 1 or stars > 5:
        raise ValidationError('Rating must be between 1 and 5')
    return stars
