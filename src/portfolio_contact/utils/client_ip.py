"""Client identification for rate limiting."""

from __future__ import annotations

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request, *, trust_proxy_headers: bool = True) -> str:
    """Return the best-effort client IP for ``request``.

    Behind a proxy/CDN the forwarded headers are consulted first: the first
    hop of ``X-Forwarded-For``, then ``CF-Connecting-IP``, then
    ``X-Real-IP``. Those headers are client-controlled unless the proxy
    overwrites them, so with ``trust_proxy_headers=False`` only the socket
    peer is used.
    """
    if trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop

        for header in ("cf-connecting-ip", "x-real-ip"):
            value = request.headers.get(header, "").strip()
            if value:
                return value

    return request.client.host if request.client else UNKNOWN_CLIENT
