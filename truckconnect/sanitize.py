"""Input sanitization for JSON request bodies (XSS prevention)."""

import html

# Keys whose values must reach the handler untouched: credentials are hashed,
# document links are stored and forwarded verbatim.
RAW_KEYS = frozenset({'password', 'documents'})
RAW_SUFFIXES = ('_url', 'Url')


def sanitize_string(value):
    """Escape HTML entities in a string.

    Converts < > & " ' to their HTML entity equivalents so that
    user-supplied strings cannot inject markup or script tags.
    """
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def _is_raw_key(key):
    return key in RAW_KEYS or (isinstance(key, str) and key.endswith(RAW_SUFFIXES))


def sanitize_dict(data):
    """Recursively walk a dict/list structure and sanitize all string values.

    Values under credential and document-link keys are passed through.
    Non-string leaves (int, float, bool, None) are returned unchanged.
    """
    if isinstance(data, dict):
        return {
            key: value if _is_raw_key(key) else sanitize_dict(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize_dict(item) for item in data]
    if isinstance(data, str):
        return sanitize_string(data)
    return data
