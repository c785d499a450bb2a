# weddingsite/core/middleware.py
# =================================================================================
# 🧱 MIDDLEWARES HTTP
# ---------------------------------------------------------------------------------
# - request_context: X-Request-ID + log de método/ruta/estado/duración.
# - security_headers: cabeceras defensivas estándar.
# - api_rate_limit: límite global por IP (las rutas /health quedan fuera).
# =================================================================================

import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from weddingsite import config, rate_limit
from weddingsite.core.security import client_ip

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-XSS-Protection": "0",
}


async def request_context(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "{} {} → {} ({:.1f} ms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
    response.headers["X-Request-ID"] = request_id
    return response


async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    if config.IS_PRODUCTION:
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


async def api_rate_limit(request: Request, call_next):
    if request.url.path.startswith("/health") or request.method == "OPTIONS":
        return await call_next(request)
    max_req, window = rate_limit.get_limits_from_env(
        "API_RL", config.API_RL_DEFAULT_MAX, config.API_RL_DEFAULT_WINDOW
    )
    key = f"api:{client_ip(request)}"
    if not rate_limit.is_allowed(key, max_req, window):
        return JSONResponse(
            status_code=429,
            content={
                "error": "Too many requests from this IP, please try again later.",
                "code": "RATE_LIMIT_EXCEEDED",
            },
            headers={"Retry-After": str(rate_limit.retry_after(key, window))},
        )
    return await call_next(request)
