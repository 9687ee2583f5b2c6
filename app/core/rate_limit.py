"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Keyed on client address; analysis uploads get their own tighter limit
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

ANALYSIS_RATE_LIMIT = "10/minute"
