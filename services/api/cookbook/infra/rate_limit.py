from slowapi import Limiter
from slowapi.util import get_remote_address

from ..settings import settings

# Per-IP; applied to the endpoints that call out to AI providers
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
)
