"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the
same instance without circular imports.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Single source of truth for rate limit strings and decorators.
UPLOAD_LIMIT = "30/minute"
PRESIGN_LIMIT = "60/minute"
WRITE_ENDPOINT_LIMIT = "120/minute"

limit_upload = limiter.limit(UPLOAD_LIMIT)
limit_presign = limiter.limit(PRESIGN_LIMIT)
limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
