# weddingsite/routers/rsvp.py
# =================================================================================
# 📋 RUTAS DE RSVP DEL INVITADO (requieren sesión)
# - GET   /api/rsvp         → RSVP propio (null si aún no hay)
# - POST  /api/rsvp         → crear RSVP (lista de invitados)
# - PATCH /api/rsvp         → edición parcial
# - POST  /api/rsvp/submit  → formulario legado de un invitado
# =================================================================================

from typing import Optional

from fastapi import APIRouter, Depends, status
from loguru import logger
from sqlalchemy.orm import Session

from weddingsite import mailer, schemas
from weddingsite.core.security import get_current_user
from weddingsite.db import get_db
from weddingsite.models import RSVP, User
from weddingsite.services import rsvp_service

router = APIRouter(prefix="/api/rsvp", tags=["rsvp"])


def _send_confirmation(user: User, rsvp: RSVP) -> None:
    """Correo de confirmación: si falla, el RSVP ya está guardado y solo se registra."""
    sent = mailer.send_rsvp_confirmation_email(
        user.email, user.full_name, user.qr_token, rsvp_service.rsvp_summary(rsvp)
    )
    if not sent:
        logger.error("No se pudo enviar la confirmación de RSVP a user_id={}", user.id)


@router.get("", response_model=Optional[schemas.RSVPOut])
def get_rsvp(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return rsvp_service.get_rsvp(db, current_user.id)


@router.post("", response_model=schemas.RSVPOut, status_code=status.HTTP_201_CREATED)
def create_rsvp(
    payload: schemas.RSVPCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rsvp = rsvp_service.create_rsvp(db, current_user.id, payload)
    _send_confirmation(current_user, rsvp)
    return rsvp


@router.patch("", response_model=schemas.RSVPOut)
def edit_rsvp(
    payload: schemas.RSVPUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return rsvp_service.update_rsvp(db, current_user.id, payload)


@router.post("/submit", response_model=schemas.RSVPOut, status_code=status.HTTP_201_CREATED)
def submit_rsvp(
    payload: schemas.RSVPSubmit,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rsvp = rsvp_service.submit_rsvp(db, current_user.id, payload)
    _send_confirmation(current_user, rsvp)
    return rsvp
