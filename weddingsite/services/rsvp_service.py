# weddingsite/services/rsvp_service.py
# =================================================================================
# 📋 SERVICIO DE RSVP
# ---------------------------------------------------------------------------------
# - Un RSVP por usuario. guest_count == len(guests) cuando se envía la lista.
# - Tamaño máximo del grupo: 1 (titular) + miembros del hogar + 1 si hay +1.
# - Los campos legados (full_name / meal_preference / allergies) reflejan al
#   primer invitado de la lista.
# - Errores de validación → ValidationError; errores de BD → RuntimeError genérico.
# =================================================================================

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weddingsite import config
from weddingsite.crud import users_crud
from weddingsite.errors import ValidationError
from weddingsite.models import RSVP, RSVPGuest, User
from weddingsite.schemas import RSVPCreate, RSVPGuestIn, RSVPSubmit, RSVPUpdate
from weddingsite.utils.validation import (
    sanitize_text,
    validate_attendance,
    validate_guest_count,
    validate_meal_preference,
    validate_name,
)


# ---------------------------------------------------------------------------------
# 🧮 Reglas compartidas (también las usa el servicio de administración)
# ---------------------------------------------------------------------------------
def validate_party_size(guest_count: int, user: User) -> None:
    named = 1 + len(user.household_members or [])
    max_allowed = named + (1 if user.plus_one_allowed else 0)
    if guest_count > max_allowed:
        plus_one = " + 1 plus-one" if user.plus_one_allowed else ""
        raise ValidationError(
            f"Party size {guest_count} exceeds maximum allowed {max_allowed} guests. "
            f"({named} household member(s){plus_one})"
        )


def validate_guests(guests: List[RSVPGuestIn], attending: str) -> List[dict]:
    """
    Valida la lista de invitados; los errores se prefijan con 'Guest N: '.
    Nombre y comida solo se validan si se asiste (YES); si no, se guardan tal cual.
    """
    if attending == "YES" and not guests:
        raise ValidationError("At least one guest is required when attending")

    cleaned = []
    for idx, guest in enumerate(guests, start=1):
        try:
            if attending == "YES":
                full_name = validate_name(guest.full_name, "Guest name")
                meal = validate_meal_preference(
                    guest.meal_preference, attending, config.MEAL_PREFERENCES_ENABLED
                )
            else:
                full_name = (guest.full_name or "").strip()
                meal = (guest.meal_preference or "").strip() or None
            cleaned.append({
                "full_name": full_name,
                "meal_preference": meal,
                "allergies": sanitize_text(guest.allergies, 200) or None,
            })
        except ValidationError as e:
            raise ValidationError(f"Guest {idx}: {e.message}") from e
    return cleaned


def replace_guests(rsvp: RSVP, cleaned: List[dict]) -> None:
    rsvp.guests = [RSVPGuest(position=i, **g) for i, g in enumerate(cleaned)]
    sync_legacy_fields(rsvp)


def sync_legacy_fields(rsvp: RSVP) -> None:
    if rsvp.guests:
        first = rsvp.guests[0]
        rsvp.full_name = first.full_name
        rsvp.meal_preference = first.meal_preference
        rsvp.allergies = first.allergies


def _commit(db: Session, obj, action: str):
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error de BD al {}: {}", action, e)
        raise RuntimeError(f"Failed to {action}") from e


# ---------------------------------------------------------------------------------
# 🔎 Lectura
# ---------------------------------------------------------------------------------
def get_rsvp(db: Session, user_id: int) -> Optional[RSVP]:
    return db.query(RSVP).filter(RSVP.user_id == user_id).first()


# ---------------------------------------------------------------------------------
# ✍️ Alta
# ---------------------------------------------------------------------------------
def create_rsvp(db: Session, user_id: int, data: RSVPCreate) -> RSVP:
    if not user_id:
        raise ValidationError("User ID is required")
    user = users_crud.get_by_id(db, user_id)
    if user is None:
        raise ValidationError("User not found")
    if get_rsvp(db, user_id) is not None:
        raise ValidationError("RSVP already exists for this user")

    attending = validate_attendance(data.attending)

    guest_count = 1 if data.guest_count is None else validate_guest_count(data.guest_count)
    validate_party_size(guest_count, user)

    rsvp = RSVP(user_id=user.id, attending=attending, guest_count=guest_count)

    if data.guests:
        if len(data.guests) != guest_count:
            raise ValidationError("Guest count must match the number of guests provided")
        replace_guests(rsvp, validate_guests(data.guests, attending))
    elif attending == "YES":
        if not (data.full_name or "").strip():
            raise ValidationError("Guest name is required when attending")
        legacy = RSVPGuestIn(
            full_name=data.full_name,
            meal_preference=data.meal_preference,
            allergies=data.allergies,
        )
        replace_guests(rsvp, validate_guests([legacy], attending))
    else:
        # NO / MAYBE sin lista: se guardan solo los campos legados informados
        if data.full_name:
            rsvp.full_name = validate_name(data.full_name, "Guest name")
        rsvp.meal_preference = validate_meal_preference(data.meal_preference, attending, False)
        rsvp.allergies = sanitize_text(data.allergies, 200) or None

    rsvp.additional_notes = sanitize_text(data.additional_notes, 500) or None
    user.has_rsvped = True
    db.add(user)
    _commit(db, rsvp, "create RSVP")
    logger.info(
        "RSVP creado → user_id={} attending={} guests={}",
        user.id, attending, guest_count,
    )
    return rsvp


def submit_rsvp(db: Session, user_id: int, data: RSVPSubmit) -> RSVP:
    """Formulario legado de un solo invitado."""
    guests = None
    if (data.full_name or "").strip():
        guests = [RSVPGuestIn(
            full_name=data.full_name,
            meal_preference=data.meal_preference,
            allergies=data.allergies,
        )]
    return create_rsvp(db, user_id, RSVPCreate(
        attending=data.attending,
        guest_count=1,
        guests=guests,
        additional_notes=data.additional_notes,
        full_name=data.full_name,
        meal_preference=data.meal_preference,
        allergies=data.allergies,
    ))


# ---------------------------------------------------------------------------------
# ✏️ Edición parcial
# ---------------------------------------------------------------------------------
def apply_rsvp_changes(rsvp: RSVP, user: User, data) -> None:
    """
    Aplica un cambio parcial (RSVPUpdate / AdminRSVPUpdate) sobre un RSVP.
    - Enviar `guests` implica attending=YES para validar, salvo que venga attending.
    - Sin guest_count explícito, el recuento sigue a la lista enviada.
    """
    fields = data.model_dump(exclude_unset=True)

    if fields.get("attending") is not None:
        rsvp.attending = validate_attendance(data.attending)
    attending = rsvp.attending.value if hasattr(rsvp.attending, "value") else rsvp.attending

    guest_count = rsvp.guest_count
    if fields.get("guest_count") is not None:
        guest_count = validate_guest_count(data.guest_count)

    if data.guests is not None:
        check_as = attending if fields.get("attending") is not None else "YES"
        if data.guests:
            if fields.get("guest_count") is None:
                guest_count = validate_guest_count(len(data.guests))
            elif guest_count != len(data.guests):
                raise ValidationError("Guest count must match the number of guests provided")
        replace_guests(rsvp, validate_guests(data.guests, check_as))
    else:
        if fields.get("full_name") is not None:
            rsvp.full_name = validate_name(data.full_name, "Guest name")
        if "meal_preference" in fields:
            rsvp.meal_preference = validate_meal_preference(
                data.meal_preference, attending, config.MEAL_PREFERENCES_ENABLED
            )
        if "allergies" in fields:
            rsvp.allergies = sanitize_text(data.allergies, 200) or None

    validate_party_size(guest_count, user)
    rsvp.guest_count = guest_count

    if "additional_notes" in fields:
        rsvp.additional_notes = sanitize_text(data.additional_notes, 500) or None


def update_rsvp(db: Session, user_id: int, data: RSVPUpdate) -> RSVP:
    rsvp = get_rsvp(db, user_id)
    if rsvp is None:
        raise ValidationError("RSVP not found")
    apply_rsvp_changes(rsvp, rsvp.user, data)
    _commit(db, rsvp, "update RSVP")
    logger.info("RSVP actualizado → user_id={}", user_id)
    return rsvp


def rsvp_summary(rsvp: RSVP) -> dict:
    """Resumen plano para el correo de confirmación."""
    attending = rsvp.attending.value if hasattr(rsvp.attending, "value") else rsvp.attending
    return {
        "attending": attending,
        "guest_count": rsvp.guest_count,
        "guests": [
            {"full_name": g.full_name, "meal_preference": g.meal_preference}
            for g in rsvp.guests
        ],
    }
