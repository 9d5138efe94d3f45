"""
Account registration, login and driver document maintenance.
"""
import logging

from truckconnect import db
from truckconnect.errors import ValidationError, ConflictError, ForbiddenError, Unauthorized
from truckconnect.models import User, Driver, DOCUMENT_TYPES, REQUIRED_DOCUMENTS
from truckconnect.utils import (
    validate_email, validate_phone, require_fields, positive_number, parse_date,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _normalize_email(email):
    return (email or '').strip().lower()


def _new_user(data, role):
    email = _normalize_email(data.get('email'))
    if not validate_email(email):
        raise ValidationError('Invalid email address')
    if data.get('phone') and not validate_phone(data['phone']):
        raise ValidationError('Invalid phone number')
    password = data.get('password') or ''
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    if User.query.filter_by(email=email).first():
        raise ConflictError('User already exists')

    user = User(
        name=str(data['name']).strip(),
        email=email,
        phone=data.get('phone'),
        role=role,
    )
    user.set_password(password)
    return user


def register_customer(data):
    require_fields(data, ('name', 'email', 'password', 'phone'))
    user = _new_user(data, 'customer')
    db.session.add(user)
    db.session.commit()
    logger.info("Customer registered: %s", user.id)
    return user


def apply_documents(driver, documents, expiries=None):
    """Store document links (and optional expiry dates) on a driver profile.

    ``documents`` maps document keys to URLs; unknown keys are rejected.
    """
    expiries = expiries or {}
    if not isinstance(documents, dict) or not isinstance(expiries, dict):
        raise ValidationError('documents must be an object')
    unknown = (set(documents) | set(expiries)) - set(DOCUMENT_TYPES)
    if unknown:
        raise ValidationError('Unknown document types: {}'.format(', '.join(sorted(unknown))))

    current_urls = driver.documents
    current_expiries = driver.document_expiries
    for key in set(documents) | set(expiries):
        url = documents[key] if key in documents else current_urls.get(key)
        if url is not None and not isinstance(url, str):
            raise ValidationError(f'{key} must be a URL string')
        expiry = parse_date(expiries[key], f'{key} expiry') if key in expiries else current_expiries.get(key)
        driver.set_document(key, url or None, expiry if url else None)


def register_driver(data):
    """Create a driver user plus a pending profile with the mandatory documents."""
    require_fields(data, ('name', 'email', 'password', 'phone', 'address', 'lorryType', 'maxCapacity'))
    documents = data.get('documents') or {}
    if not isinstance(documents, dict):
        raise ValidationError('documents must be an object')
    missing = [key for key in REQUIRED_DOCUMENTS if not documents.get(key)]
    if missing:
        raise ValidationError(
            'The following required documents are missing: {}'.format(', '.join(missing))
        )

    user = _new_user(data, 'driver')
    driver = Driver(
        address=str(data['address']).strip(),
        lorry_type=str(data['lorryType']).strip(),
        max_capacity=positive_number(data['maxCapacity'], 'maxCapacity'),
        status='pending',
    )
    apply_documents(driver, documents, data.get('documentExpiry'))
    user.driver_profile = driver

    db.session.add(user)
    db.session.commit()
    logger.info("Driver registered: user=%s driver=%s (pending approval)", user.id, driver.id)
    return user


def authenticate(email, password):
    """Resolve credentials to a user. Drivers must have been approved."""
    if not email or not password:
        raise ValidationError('Please provide email and password')
    user = User.query.filter_by(email=_normalize_email(email)).first()
    if not user or not user.check_password(password):
        raise Unauthorized('Invalid credentials')

    if user.role == 'driver':
        driver = user.driver_profile
        if driver is None or driver.status == 'pending':
            raise ForbiddenError('Your account is pending approval. Please contact admin.')
        if driver.status == 'rejected':
            raise ForbiddenError(
                'Your registration was rejected: {}'.format(driver.rejection_reason or 'no reason given')
            )
    return user


def update_driver_documents(user, data):
    if user.role != 'driver' or user.driver_profile is None:
        raise ForbiddenError('Only drivers can update documents')
    driver = user.driver_profile
    apply_documents(driver, data.get('documents') or {}, data.get('documentExpiry'))
    missing = driver.missing_required_documents()
    if missing:
        db.session.rollback()
        raise ValidationError(
            'The following required documents are missing: {}'.format(', '.join(missing))
        )
    db.session.commit()
    logger.info("Driver %s updated documents", driver.id)
    return driver


def _text(data, key):
    value = data[key]
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{key} must be a non-empty string')
    return value.strip()


def _apply_contact_fields(user, data):
    if data.get('name'):
        user.name = _text(data, 'name')
    if data.get('phone'):
        if not validate_phone(data['phone']):
            raise ValidationError('Invalid phone number')
        user.phone = data['phone']


def update_user_profile(user, data):
    """Change the caller's name and/or phone. Empty fields are left alone."""
    try:
        _apply_contact_fields(user, data)
    except ValidationError:
        db.session.rollback()
        raise
    db.session.commit()
    logger.info("User %s updated profile", user.id)
    return user


def update_driver_profile(user, data):
    """Change a driver's contact details and vehicle capability.

    Applications already submitted keep the snapshot taken when the driver
    applied; only later applications see the new values.
    """
    if user.role != 'driver' or user.driver_profile is None:
        raise ForbiddenError('Access denied')
    driver = user.driver_profile
    try:
        _apply_contact_fields(user, data)
        if data.get('address'):
            driver.address = _text(data, 'address')
        if data.get('lorryType'):
            driver.lorry_type = _text(data, 'lorryType')
        if data.get('maxCapacity'):
            driver.max_capacity = positive_number(data['maxCapacity'], 'maxCapacity')
    except ValidationError:
        db.session.rollback()
        raise
    db.session.commit()
    logger.info("Driver %s updated profile", driver.id)
    return driver
