"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (to mount as middleware) and api/routes/v1/auth.py
(to apply the login limit with @limiter.limit()).

One shared instance means one counter store for every route. Counters live
in process memory by default; multi-worker deployments point
RATE_LIMIT_STORAGE_URI at a shared backend (e.g. redis://) so the login
limit holds across workers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri=get_settings().rate_limit_storage_uri)
