"""Size-bounded request body reading."""

from __future__ import annotations

from starlette.requests import Request


async def read_bounded_body(request: Request, limit: int) -> tuple[bytes, bool]:
    """Read at most ``limit`` bytes of the request body.

    Returns the bytes read and whether the body was longer than ``limit``.
    Reading stops at the first chunk that crosses the limit, so an oversized
    upload is never buffered in full.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        return b"", True

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            return b"".join(chunks), True
        chunks.append(chunk)
    return b"".join(chunks), False
