"""SQLAlchemy models package"""
from .base import generate_uuid, utcnow
from .user import User
from .driver import Driver, DOCUMENT_TYPES, REQUIRED_DOCUMENTS, DRIVER_STATUSES
from .load import Load, LoadApplicant, EDITABLE_FIELDS
from .rating import Rating
from .notification import Notification, NOTIFICATION_TYPES

__all__ = [
    'generate_uuid',
    'utcnow',
    'User',
    'Driver',
    'DOCUMENT_TYPES',
    'REQUIRED_DOCUMENTS',
    'DRIVER_STATUSES',
    'Load',
    'LoadApplicant',
    'EDITABLE_FIELDS',
    'Rating',
    'Notification',
    'NOTIFICATION_TYPES',
]
