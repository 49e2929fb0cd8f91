"""
api/limiter.py -- Shared slowapi rate limiter instance.

Mounted by api/main.py through SlowAPIMiddleware, which applies the
default limit (RATE_LIMIT, per client IP) to every route not marked
@limiter.exempt. The limit caps how often one client can make the gateway
call the CAS server with a ticket.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[get_settings().rate_limit],
    storage_uri="memory://",
)
