"""
Rate limiting using SlowAPI
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
import logging

from libseat.core.config import settings

logger = logging.getLogger(__name__)


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting.
    Callers that pass user_id are limited per user, everyone else per IP.
    """
    user_id = request.query_params.get('user_id')
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_identifier,
    default_limits=["100/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
