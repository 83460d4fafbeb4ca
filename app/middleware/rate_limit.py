"""
Rate limiting middleware using slowapi
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
import structlog

from app.config import GENERATION_RATE_LIMIT

logger = structlog.get_logger()

# Create limiter instance
limiter = Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Answer 429 with the same error shape as HTTPException"""
    host = request.client.host if request.client else "unknown"
    logger.warning("rate_limit_exceeded", client=host, path=request.url.path, limit=str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}. Please try again later."},
    )


def generation_limit():
    """Rate limit for endpoints that run the quiz generator"""
    return limiter.limit(GENERATION_RATE_LIMIT)


def general_api_limit():
    """Rate limit for the remaining API endpoints"""
    return limiter.limit("60/minute")
