"""Rate limiting configuration using slowapi."""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)

# Used when the exceeded limit cannot report its own window
_DEFAULT_RETRY_AFTER_SECONDS = 60


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Exception handler for rate limit exceeded errors.

    Args:
        request: The incoming request
        exc: The RateLimitExceeded exception

    Returns:
        429 JSONResponse with ``detail``, ``retry_after`` and a Retry-After header
    """
    retry_after = _DEFAULT_RETRY_AFTER_SECONDS
    limit = getattr(exc, "limit", None)
    if limit is not None and getattr(limit, "limit", None) is not None:
        retry_after = int(limit.limit.get_expiry())

    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")

    response = JSONResponse(
        status_code=429,
        content={
            "detail": f"Rate limit exceeded: {exc.detail}",
            "retry_after": retry_after,
        },
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # Each endpoint sets its own limit
    enabled=settings.RATE_LIMIT_ENABLED,
    headers_enabled=False,
)
