"""
Rate Limiting Module
Protects the authentication endpoints from abuse using slowapi
"""

from datetime import datetime, timezone

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, status
from fastapi.responses import JSONResponse
from app.core.config import settings

# ============================================================================
# RATE LIMITER CONFIGURATION
# ============================================================================

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


class RateLimits:
    """Centralized rate limit configurations"""

    AUTH_REGISTER = settings.AUTH_RATE_LIMIT
    AUTH_LOGIN = settings.AUTH_RATE_LIMIT
    AUTH_SOCIAL_LOGIN = settings.AUTH_RATE_LIMIT


# ============================================================================
# CUSTOM RATE LIMIT HANDLER
# ============================================================================

async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render 429 in the same envelope as the other API errors"""
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests: {exc.detail}",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "path": request.url.path
            }
        },
        headers={"Retry-After": "60"}
    )
