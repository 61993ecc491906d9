"""
Security Headers Middleware

Adds standard security headers to every API response.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from core.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses.

    - X-Content-Type-Options / X-Frame-Options / Referrer-Policy everywhere
    - Strict-Transport-Security and a JSON-API Content-Security-Policy
      outside of development
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Camera is allowed for proof photos/videos captured in the web app
        response.headers["Permissions-Policy"] = (
            "geolocation=(), "
            "microphone=(), "
            "payment=(), "
            "usb=()"
        )

        if not settings.DEBUG and settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
            # Interactive docs need inline assets; everything else is JSON
            if not request.url.path.startswith(("/docs", "/redoc")):
                response.headers["Content-Security-Policy"] = (
                    "default-src 'none'; frame-ancestors 'none';"
                )

        return response
