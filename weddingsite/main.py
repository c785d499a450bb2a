# weddingsite/main.py
# =================================================================================
# 🧠 NÚCLEO DE LA API (FastAPI)
# ---------------------------------------------------------------------------------
# - Configura logs (loguru), CORS y middlewares (request-id, cabeceras, rate limit).
# - Traduce errores de dominio a {"error", "code"} y oculta los inesperados (500).
# - Registra los routers: auth, rsvp, admin, meta, health.
# - El esquema de BD se gestiona con Alembic (no hay create_all al arrancar).
# =================================================================================

import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from weddingsite import config
from weddingsite.core.logging import setup_logging
from weddingsite.core.middleware import api_rate_limit, request_context, security_headers
from weddingsite.db import log_db_path_on_startup
from weddingsite.errors import WeddingError
from weddingsite.routers import admin, auth_routes, health, meta, rsvp

setup_logging()
logger.info(
    "[BOOT] ENVIRONMENT={} | DRY_RUN={} | EMAIL_PROVIDER={} | MEAL_PREFERENCES={}",
    config.ENVIRONMENT,
    os.getenv("DRY_RUN", "1"),
    os.getenv("EMAIL_PROVIDER", "sendgrid"),
    config.MEAL_PREFERENCES_ENABLED,
)

app = FastAPI(
    title="Wedding Website API",
    description="Backend de RSVP con acceso por QR y panel de administración de invitados",
    version="1.0.0",
)

# Orden: el último middleware registrado es el más externo
app.middleware("http")(api_rate_limit)
app.middleware("http")(security_headers)
app.middleware("http")(request_context)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.FRONTEND_URLS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.exception_handler(WeddingError)
async def wedding_error_handler(request: Request, exc: WeddingError):
    if exc.status_code >= 500:
        logger.error("{} {} → {}", request.method, request.url.path, exc.message)
    else:
        logger.info("{} {} → {} {}", request.method, request.url.path, exc.code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
        headers=headers,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("Error no controlado en {} {}", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "code": "INTERNAL_ERROR"},
    )


@app.on_event("startup")
def _startup_db_trace() -> None:
    log_db_path_on_startup()


app.include_router(auth_routes.router)
app.include_router(rsvp.router)
app.include_router(admin.router)
app.include_router(meta.router)
app.include_router(health.router)
