from slowapi import Limiter

from snaplink_app.config import settings
from snaplink_app.dependencies import get_client_ip

# Shared by the link routes (decorators) and main.py (app.state.limiter)
limiter = Limiter(
    key_func=get_client_ip,
    enabled=settings.rate_limit_enabled,
)

CREATE_LINK_LIMIT = f"{settings.rate_limit_per_minute}/minute"
