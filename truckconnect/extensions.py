"""
Shared Flask extension instances.

Created as a separate module to avoid circular imports when route
blueprints need access to extensions that are initialised in the
application factory.
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Storage comes from RATELIMIT_STORAGE_URI (Redis in production, memory otherwise).
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100 per minute"],
)
