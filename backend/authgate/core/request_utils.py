"""Request helpers shared by the API routers."""

import ipaddress
import logging

from fastapi import Request

logger = logging.getLogger(__name__)

_LOOPBACK_HOSTS = ("127.0.0.1", "::1", "localhost")


def _is_valid_ip(ip_str: str) -> bool:
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request) -> str:
    """Get the client IP address used for login throttling.

    X-Real-IP is honoured only when the direct peer is a local reverse
    proxy; X-Forwarded-For is never trusted since any client can set it.
    Returns "unknown" when the transport exposes no peer address.
    """
    if request.client and request.client.host in _LOOPBACK_HOSTS:
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid X-Real-IP: {real_ip}")

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    The scheme name is matched case-insensitively. The token is never read
    from query parameters, cookies or the body.
    """
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
