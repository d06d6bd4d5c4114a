"""Modular Intervals.icu client components (rate limiter, session, resources)."""

from .activities import ActivitiesAPI  # noqa: F401
from .rate_limiter import RateLimiter  # noqa: F401
from .resources import ResourceAPI  # noqa: F401
from .session import create_default_session, get_default_session  # noqa: F401
