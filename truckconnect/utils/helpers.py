"""
Helper utilities
"""
from flask import request

from truckconnect.sanitize import sanitize_dict


def json_body():
    """Return the sanitized JSON body of the current request ({} when absent)."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return {}
    return sanitize_dict(data)


def truncate_string(text, max_length=100, suffix='...'):
    """
    Truncate string to max length

    Args:
        text (str): Text to truncate
        max_length (int): Maximum length
        suffix (str): Suffix to add if truncated

    Returns:
        str: Truncated string
    """
    if not text or len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix
