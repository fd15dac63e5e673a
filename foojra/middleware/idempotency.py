"""
Foojra API — Idempotency Key Middleware

Order creation, payment and cancellation accept an Idempotency-Key header:
  - Cache hit  → return the stored response (no business logic runs)
  - Cache miss → execute handler, store the response in Redis
Keys are scoped to the caller's token and the request path, so two users
reusing a key never see each other's responses. A key replayed with a
different request body is refused with 422. Responses that ask the client to
retry (Retry-After) are not stored.
"""
import hashlib
import json
import logging
import re

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from foojra.core.config import get_settings
from foojra.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

IDEMPOTENCY_PREFIX = "idempotent:"
IDEMPOTENCY_ROUTES = [
    ("POST", re.compile(r"^/api/orders/?$")),
    ("PUT", re.compile(r"^/api/orders/[^/]+/pay$")),
    ("PUT", re.compile(r"^/api/orders/[^/]+/cancel$")),
]


def is_idempotent_route(method: str, path: str) -> bool:
    return any(method == m and pattern.match(path) for m, pattern in IDEMPOTENCY_ROUTES)


def cache_key_for(request: Request, idem_key: str) -> str:
    caller = hashlib.sha256(request.headers.get("Authorization", "").encode()).hexdigest()[:16]
    return f"{IDEMPOTENCY_PREFIX}{caller}:{request.method}:{request.url.path}:{idem_key}"


def fingerprint(body: bytes) -> str:
    return hashlib.sha256(body).hexdigest()


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """
    Reads the Idempotency-Key header and either:
      1. Returns cached response (replay)
      2. Executes handler and caches the response
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if not settings.IDEMPOTENCY_ENABLED:
            return await call_next(request)

        if not is_idempotent_route(request.method, request.url.path):
            return await call_next(request)

        idem_key = request.headers.get("Idempotency-Key")
        if not idem_key:
            return await call_next(request)

        redis = get_redis()
        cache_key = cache_key_for(request, idem_key)
        request_fingerprint = fingerprint(await request.body())

        # Cache HIT → replay stored response
        cached = await redis.get(cache_key)
        if cached:
            data = json.loads(cached)
            if data.get("fingerprint") != request_fingerprint:
                return JSONResponse(
                    status_code=422,
                    content={"detail": "Idempotency-Key was already used with a different request body"},
                )
            logger.info("Idempotent replay for %s %s", request.method, request.url.path)
            return JSONResponse(
                content=data["body"],
                status_code=data["status_code"],
                headers={"X-Idempotency-Replay": "true"},
            )

        response = await call_next(request)

        body_bytes = b""
        async for chunk in response.body_iterator:
            body_bytes += chunk

        try:
            body = json.loads(body_bytes)
        except ValueError:
            body = body_bytes.decode("utf-8", errors="replace")

        # Only final outcomes that reached the business logic are remembered
        if (
            response.status_code < 500
            and response.status_code != 401
            and "retry-after" not in response.headers
        ):
            await redis.setex(
                cache_key,
                settings.IDEMPOTENCY_KEY_TTL_SECONDS,
                json.dumps({
                    "body": body,
                    "status_code": response.status_code,
                    "fingerprint": request_fingerprint,
                }),
            )

        return Response(
            content=body_bytes,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )
