from slowapi import Limiter
from slowapi.util import get_remote_address

from portal.core.config import settings

# One fixed one-minute window per caller address, shared by every route that
# is not explicitly exempted (see SlowAPIMiddleware in main).
limiter = Limiter(
    key_func=get_remote_address,
    application_limits=[f"{settings.rate_limit_per_minute}/minute"],
    enabled=settings.rate_limit_enabled,
)
