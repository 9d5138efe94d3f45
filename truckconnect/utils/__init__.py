"""Utilities package"""
from .validators import (
    validate_email, validate_phone, require_fields, positive_number, parse_date, star_rating,
)
from .helpers import json_body, truncate_string

__all__ = [
    'validate_email',
    'validate_phone',
    'require_fields',
    'positive_number',
    'parse_date',
    'star_rating',
    'json_body',
    'truncate_string',
]
