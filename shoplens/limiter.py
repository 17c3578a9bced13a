from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

# Keyed by client IP; counters live in RATE_LIMIT_STORAGE_URI (redis:// when scaled out)
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=[settings.DEFAULT_RATE_LIMIT]
)
