# weddingsite/auth.py
# =================================================================================
# 🔐 TOKENS DE SESIÓN (JWT)
# ---------------------------------------------------------------------------------
# - Firma y verifica JWT de acceso con python-jose (HS256 por defecto).
# - Claims: sub (id de usuario), user_id, email, full_name, is_admin, type=access.
# - verify_access_token devuelve None ante firma inválida o expiración.
# =================================================================================

from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from jose import jwt, JWTError

from weddingsite import config


def _utcnow() -> datetime:
    return datetime.utcnow()


def _encode(payload: Dict[str, Any]) -> str:
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def create_access_token(user, *, expires_minutes: Optional[int] = None) -> str:
    """Crea el token de sesión para un User (guest o admin)."""
    now = _utcnow()
    exp = now + timedelta(minutes=expires_minutes or config.JWT_EXPIRE_MINUTES)
    payload: Dict[str, Any] = {
        "sub": str(user.id),
        "user_id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "is_admin": bool(user.is_admin),
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return _encode(payload)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decodifica y valida firma/expiración. Lanza JWTError si no es un token de acceso."""
    payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Invalid token type (expected 'access').")
    return payload


def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Como decode_access_token pero devuelve None en lugar de lanzar."""
    try:
        return decode_access_token(token)
    except JWTError:
        return None
