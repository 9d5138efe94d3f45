"""
Security headers applied to every response
"""


def set_security_headers(response):
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Content-Security-Policy"] = "default-src 'none'"
    return response


def register_request_hooks(app):
    """Attach the after-request hooks to the application"""
    app.after_request(set_security_headers)

    if not app.debug and not app.testing:
        @app.after_request
        def set_hsts(response):
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
            return response
