"""
TruckConnect API Route Blueprints
"""
from .auth import auth_bp
from .loads import loads_bp
from .drivers import drivers_bp
from .ratings import ratings_bp
from .notifications import notifications_bp
from .admin import admin_bp
from .profile import profile_bp

__all__ = [
    "auth_bp",
    "loads_bp",
    "drivers_bp",
    "ratings_bp",
    "notifications_bp",
    "admin_bp",
    "profile_bp",
]
