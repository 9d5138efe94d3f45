"""Middleware package"""
from .request_id import RequestIdMiddleware
from .security_headers import register_request_hooks, set_security_headers

__all__ = [
    'RequestIdMiddleware',
    'register_request_hooks',
    'set_security_headers',
]
