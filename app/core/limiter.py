"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Limit strings come from settings.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def _events_limit() -> str:
    return get_settings().events_rate_limit


# Public ingestion endpoints (events, webhooks).
limit_events = limiter.limit(_events_limit)
