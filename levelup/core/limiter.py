from slowapi import Limiter
from slowapi.util import get_remote_address

from levelup.core.config import settings

DEFAULT_LIMIT = f"{settings.rate_limit_per_minute}/minute"
# Auto-select, import and recalculation endpoints
BULK_LIMIT = f"{max(1, settings.rate_limit_per_minute // 6)}/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[DEFAULT_LIMIT],
    enabled=settings.environment != "testing",
)
