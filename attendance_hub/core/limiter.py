from slowapi import Limiter
from slowapi.util import get_remote_address

from attendance_hub.core.config import settings

limiter = Limiter(key_func=get_remote_address)

# Applied per-route, e.g. @limiter.limit(LOGIN_RATE_LIMIT)
LOGIN_RATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"
