# weddingsite/routers/health.py
# =================================================================================
# 🩺 SALUD DEL SERVICIO
# - GET /health/basic → proceso vivo + BD
# - GET /health/smtp  → configuración y conexión del proveedor de correo
# =================================================================================

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from weddingsite import config, db, mailer

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/basic")
def basic():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.ENVIRONMENT,
        "database": "ok" if db.ping() else "unavailable",
    }


@router.get("/smtp")
def smtp():
    missing = mailer.missing_settings()
    if missing:
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "Email provider is not configured", "missing": missing},
        )
    result = mailer.check_smtp_connection()
    return JSONResponse(status_code=200 if result["ok"] else 502, content=result)
