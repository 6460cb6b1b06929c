from slowapi import Limiter
from starlette.requests import Request

from nodeauth.config import settings


def get_real_client_ip(request: Request) -> str:
    """Client IP used as the rate limit key.

    With TRUST_PROXY_HEADERS the first X-Forwarded-For entry is the client;
    otherwise only the socket peer counts, so clients cannot pick their own key.
    """
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(key_func=get_real_client_ip)
