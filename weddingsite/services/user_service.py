# weddingsite/services/user_service.py
# =================================================================================
# 🔐 SERVICIO DE USUARIOS / AUTENTICACIÓN POR QR
# ---------------------------------------------------------------------------------
# - login_with_qr_token: token QR (o alias QR) → JWT + usuario.
# - register_user: alta con token QR conocido (flujo de autoregistro).
# - verify_token: JWT → usuario vigente o None.
# =================================================================================

from typing import Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from weddingsite.auth import create_access_token, verify_access_token
from weddingsite.crud import users_crud
from weddingsite.errors import AuthenticationError, ValidationError
from weddingsite.models import User
from weddingsite.utils.validation import validate_email, validate_name, validate_qr_token


def login_with_qr_token(db: Session, qr_token: str) -> Tuple[str, User]:
    token = validate_qr_token(qr_token)

    user = users_crud.get_by_qr_token(db, token) or users_crud.get_by_qr_alias(db, token)
    if user is None:
        logger.warning("Login QR fallido: token desconocido")
        raise AuthenticationError("Invalid or expired QR token")
    if not user.is_invited:
        logger.warning("Login QR rechazado: usuario no invitado id={}", user.id)
        raise AuthenticationError("User is not invited")

    logger.info("Login QR OK → id={} email={}", user.id, users_crud.mask_email(user.email))
    return create_access_token(user), user


def register_user(db: Session, full_name: str, email: str, qr_token: str) -> Tuple[str, User]:
    name = validate_name(full_name, "Full name")
    norm_email = validate_email(email)
    token = validate_qr_token(qr_token)

    if users_crud.get_by_email(db, norm_email):
        raise ValidationError("User with this email already exists")
    if users_crud.get_by_qr_token(db, token):
        raise ValidationError("QR token is already in use")

    user = users_crud.create(db, full_name=name, email=norm_email, qr_token=token)
    return create_access_token(user), user


def verify_token(db: Session, token: str) -> Optional[User]:
    payload = verify_access_token(token)
    if not payload:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    user = users_crud.get_by_id(db, user_id)
    if user is None or not user.is_invited:
        return None
    return user
