"""
Rate limiting and client identification

slowapi keeps counters in memory by default; point RATE_LIMIT_STORAGE_URI at
redis://... to share them between instances. Limits are opt-in per route
(decorator): the inspection by-token view stays open, the public remote
signature endpoints do not.

The same client IP / user agent helpers are what a signature is stamped with.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from ..config import settings

# Column sizes on contracts.ip_address / contracts.user_agent
MAX_IP_LENGTH = 45
MAX_USER_AGENT_LENGTH = 500


def get_real_client_ip(request: Request) -> str:
    """
    Originating client IP behind the reverse proxy:
    first X-Forwarded-For hop, then X-Real-IP, then the socket peer.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop[:MAX_IP_LENGTH]

    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip[:MAX_IP_LENGTH]

    return get_remote_address(request)


def get_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent", "")[:MAX_USER_AGENT_LENGTH]


limiter = Limiter(key_func=get_real_client_ip, storage_uri=settings.rate_limit_storage_uri)


RATE_LIMITS = {
    "login": "5/minute",
    # Contract creation and signature
    "contract_write": "30/minute",
    # Minting public inspection links
    "inspection_link": "30/minute",
    # Public remote-signature page and submission
    "remote_sign": "10/minute",
}


def get_rate_limit(operation: str) -> str:
    return RATE_LIMITS.get(operation, "100/minute")
