"""Request utility functions."""

from fastapi import Request

from earmark.core.config import settings


def get_client_ip(request: Request, trust_proxy_depth: int | None = None) -> str:
    """
    Extract the client IP, trusting a fixed number of reverse proxies.

    The proxy chain is ``X-Forwarded-For`` followed by the socket peer. With a
    depth of N the address N hops back from the peer is the client; entries
    further left were supplied by the client and are not trusted.

    Falls back to:
    1. X-Real-IP (single IP from nginx) when no X-Forwarded-For is present
    2. Direct connection IP
    """
    depth = settings.TRUST_PROXY_DEPTH if trust_proxy_depth is None else trust_proxy_depth
    peer = request.client.host if request.client else None

    if depth > 0:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            chain = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
            if peer:
                chain.append(peer)
            if chain:
                return chain[max(len(chain) - 1 - depth, 0)]

        # X-Real-IP is typically set by nginx
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return peer or "unknown"
