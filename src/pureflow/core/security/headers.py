"""Response hardening headers."""

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

# The docs pages pull Swagger UI from jsdelivr; everything else is JSON.
DOCS_FRIENDLY_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' cdn.jsdelivr.net; "
    "img-src 'self' data: cdn.jsdelivr.net; "
    "frame-ancestors 'none'"
)


class SecurityHeadersMiddleware:
    """Stamp a fixed set of security headers onto every HTTP response.

    Written as plain ASGI rather than ``BaseHTTPMiddleware`` so it does not
    buffer bodies or detach the endpoint from the request's context.
    Responses carry session cookies, so intermediaries are told not to store them.
    """

    def __init__(self, app: ASGIApp, hsts: str | None = None, csp: str = DOCS_FRIENDLY_CSP):
        self.app = app
        self.headers: list[tuple[str, str]] = [
            ("Content-Security-Policy", csp),
            ("X-Content-Type-Options", "nosniff"),
            ("X-Frame-Options", "DENY"),
            ("Referrer-Policy", "no-referrer"),
            ("Cache-Control", "no-store"),
        ]
        if hsts:
            self.headers.append(("Strict-Transport-Security", hsts))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers:
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)
