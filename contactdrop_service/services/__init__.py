from .rate_limiter import SlidingWindowRateLimiter
from .sanitize import sanitise
from .session_service import SessionService, new_session_id
from .vcard import render_vcards

__all__ = [
    "SlidingWindowRateLimiter",
    "SessionService",
    "new_session_id",
    "render_vcards",
    "sanitise",
]
