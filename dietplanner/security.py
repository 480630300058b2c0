# dietplanner/security.py
# Response security headers for the API and the SPA shell.

CSP_DIRECTIVES = {
    "default-src": "'self'",
    "img-src": "'self' data: blob:",
    # Export previews and the SPA build use inline styles
    "style-src": "'self' 'unsafe-inline'",
    "script-src": "'self'",
    "font-src": "'self' data:",
    "connect-src": "'self'",
    "base-uri": "'self'",
    "form-action": "'self'",
    "frame-ancestors": "'none'",
}

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "X-Frame-Options": "DENY",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains; preload"


def content_security_policy() -> str:
    return "; ".join(f"{name} {value}" for name, value in CSP_DIRECTIVES.items())


def register_security_headers(app) -> None:
    """Attach security headers to every response; HSTS only in production."""
    if app.config.get("_SEC_HEADERS_INIT", False):
        return

    csp = content_security_policy()

    @app.after_request
    def _security_headers(resp):
        resp.headers.setdefault("Content-Security-Policy", csp)
        for name, value in STATIC_HEADERS.items():
            resp.headers.setdefault(name, value)
        if app.config.get("IS_PRODUCTION"):
            resp.headers.setdefault("Strict-Transport-Security", HSTS_VALUE)
        return resp

    app.config["_SEC_HEADERS_INIT"] = True
