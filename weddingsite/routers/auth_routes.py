# weddingsite/routers/auth_routes.py
# =================================================================================
# 🔐 RUTAS DE AUTENTICACIÓN
# - POST /api/auth/login     → login con token QR (o alias QR)
# - POST /api/auth/register  → alta con token QR
# - GET  /api/auth/me        → usuario de la sesión actual
# =================================================================================

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from weddingsite import schemas
from weddingsite.core.security import get_current_user, login_rate_limit
from weddingsite.db import get_db
from weddingsite.models import User
from weddingsite.services import user_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=schemas.AuthPayload,
    dependencies=[Depends(login_rate_limit)],
)
def login_with_qr_token(payload: schemas.QrLoginRequest, db: Session = Depends(get_db)):
    token, user = user_service.login_with_qr_token(db, payload.qr_token)
    return schemas.AuthPayload(token=token, user=schemas.UserOut.model_validate(user))


@router.post(
    "/register",
    response_model=schemas.AuthPayload,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(login_rate_limit)],
)
def register_user(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    token, user = user_service.register_user(db, payload.full_name, payload.email, payload.qr_token)
    return schemas.AuthPayload(token=token, user=schemas.UserOut.model_validate(user))


@router.get("/me", response_model=schemas.UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
