"""Rate limiting middleware for REST API endpoints.

Every request counts against a per-IP limit. Writes that create records or
files also count against a second, stricter per-IP limit.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from sosiol.config import settings
from sosiol.core.rate_limiter import rate_limiter

# Only trust X-Forwarded-For from localhost/docker (reverse proxy)
TRUSTED_PROXIES = {"127.0.0.1", "::1", "localhost", "172.17.0.1"}

WRITE_ROUTES = {
    ("POST", "/api/creators"),
    ("POST", "/api/tips"),
    ("POST", "/api/upload/avatar"),
}


class RateLimitMiddleware(BaseHTTPMiddleware):
    SKIP_PATHS = {"/health", "/health/ready", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(self, request: Request, call_next):
        path = request.url.path.rstrip("/") or "/"
        if path in self.SKIP_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        ip = self._client_ip(request)
        allowed, headers = rate_limiter.check(f"ip:{ip}", settings.rest_rate_limit_per_minute)
        if allowed and (request.method, path) in WRITE_ROUTES:
            allowed, headers = rate_limiter.check(
                f"write:{ip}", settings.rest_write_rate_limit_per_minute
            )

        if not allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded",
                    "retry_after": int(headers.get("Retry-After", "60")),
                },
                headers=headers,
            )

        response: Response = await call_next(request)
        for k, v in headers.items():
            response.headers[k] = v
        return response

    def _client_ip(self, request: Request) -> str:
        client = request.client
        ip = client.host if client else "unknown"
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded and ip in TRUSTED_PROXIES:
            ip = forwarded.split(",")[0].strip()
        return ip
