# weddingsite/services/admin_service.py
# =================================================================================
# 👑 SERVICIO DE ADMINISTRACIÓN
# ---------------------------------------------------------------------------------
# - Estadísticas, listado y exportación CSV de invitados.
# - Alta / edición / baja de usuarios y de sus RSVP.
# - Personalización individual y masiva (JSON o CSV), con bloqueo de alias QR.
# - Regeneración de imágenes QR (los tokens no cambian).
# =================================================================================

import io
from collections import Counter
from typing import List, Optional

import pandas as pd
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weddingsite.crud import users_crud
from weddingsite.errors import ForbiddenError, ValidationError
from weddingsite.models import RSVP, AttendanceEnum, HouseholdMember, User
from weddingsite.schemas import (
    AdminCreateUser,
    AdminRSVPUpdate,
    AdminUpdateUser,
    BulkPersonalizationItem,
    PersonalizationIn,
)
from weddingsite.services.rsvp_service import apply_rsvp_changes
from weddingsite.utils import qr
from weddingsite.utils.csv_import import parse_personalization_csv
from weddingsite.utils.validation import (
    optional_text,
    validate_email,
    validate_guest_group,
    validate_name,
    validate_qr_alias,
)

ADDRESS_FIELDS = ("street_address", "address_line2", "city", "state", "zip_code", "country")
TEXT_LIMITS = {
    "relationship_to_bride": 100,
    "relationship_to_groom": 100,
    "custom_welcome_message": 500,
    "personal_photo": 500,
    "special_instructions": 500,
    "dietary_restrictions": 500,
    "street_address": 200,
    "address_line2": 200,
    "city": 100,
    "state": 100,
    "zip_code": 20,
    "country": 100,
}
CSV_COLUMNS = [
    "Full Name", "Email", "RSVP Status", "Attending", "Guest Count",
    "Meal Preferences", "Dietary Restrictions", "Additional Notes",
    "Street Address", "Address Line 2", "City", "State", "Zip Code", "Country",
    "QR Token", "Invited Date",
]

ALIAS_FORMAT_ERROR = (
    "QR alias must contain only lowercase letters, numbers, and hyphens (3-50 characters)"
)
ALIAS_LOCKED_ERROR = (
    "QR alias is locked and cannot be changed. Unlock it first via the admin panel."
)


def _attending(rsvp: RSVP) -> str:
    value = rsvp.attending
    return value.value if isinstance(value, AttendanceEnum) else str(value)


def _get_user(db: Session, user_id: int) -> User:
    user = users_crud.get_by_id(db, user_id)
    if user is None:
        raise ValidationError("User not found")
    return user


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


# =================================================================================
# 📊 Lectura
# =================================================================================
def get_wedding_stats(db: Session) -> dict:
    users = users_crud.list_invited(db)
    rsvps = [u.rsvp for u in users if u.has_rsvped and u.rsvp is not None]
    total_invited = len(users)
    total_rsvped = sum(1 for u in users if u.has_rsvped)

    by_status = Counter(_attending(r) for r in rsvps)
    meals: Counter = Counter()
    restrictions = set()
    # Comidas y alergias solo de quienes asisten
    for r in [x for x in rsvps if _attending(x) == "YES"]:
        if r.guests:
            for g in r.guests:
                meals[g.meal_preference or "Not specified"] += 1
        else:
            meals[r.meal_preference or "Not specified"] += 1
        for allergies in [g.allergies for g in r.guests] + [r.allergies]:
            if allergies and allergies.strip():
                restrictions.add(allergies.strip())

    percentage = round(total_rsvped / total_invited * 100, 2) if total_invited else 0.0
    return {
        "total_invited": total_invited,
        "total_rsvped": total_rsvped,
        "total_attending": by_status.get("YES", 0),
        "total_not_attending": by_status.get("NO", 0),
        "total_maybe": by_status.get("MAYBE", 0),
        "rsvp_percentage": percentage,
        "meal_preferences": [
            {"preference": pref, "count": count}
            for pref, count in sorted(meals.items(), key=lambda kv: (-kv[1], kv[0]))
        ],
        "dietary_restrictions": sorted(restrictions),
    }


def get_all_users_with_rsvps(db: Session) -> List[User]:
    """Invitados con RSVP primero y luego por nombre."""
    users = users_crud.list_invited(db)
    return sorted(users, key=lambda u: (not u.has_rsvped, u.full_name.lower()))


def _csv_row(user: User) -> dict:
    rsvp = user.rsvp
    if rsvp is not None:
        meals = [g.meal_preference for g in rsvp.guests if g.meal_preference]
        if not meals and rsvp.meal_preference:
            meals = [rsvp.meal_preference]
        allergies = [g.allergies for g in rsvp.guests if g.allergies]
        if not allergies and rsvp.allergies:
            allergies = [rsvp.allergies]
    else:
        meals, allergies = [], []
    return {
        "Full Name": user.full_name,
        "Email": user.email,
        "RSVP Status": "Submitted" if user.has_rsvped else "Pending",
        "Attending": _attending(rsvp) if rsvp else "No Response",
        "Guest Count": rsvp.guest_count if rsvp else 0,
        "Meal Preferences": "; ".join(meals) or "Not specified",
        "Dietary Restrictions": "; ".join(allergies) or "None",
        "Additional Notes": (rsvp.additional_notes if rsvp else None) or "",
        "Street Address": user.street_address or "",
        "Address Line 2": user.address_line2 or "",
        "City": user.city or "",
        "State": user.state or "",
        "Zip Code": user.zip_code or "",
        "Country": user.country or "",
        "QR Token": user.qr_token,
        "Invited Date": user.created_at.date().isoformat() if user.created_at else "",
    }


def export_guest_list_csv(db: Session) -> str:
    rows = [_csv_row(u) for u in get_all_users_with_rsvps(db)]
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue()


# =================================================================================
# 🔤 Alias QR
# =================================================================================
def _apply_alias_change(db: Session, user: User, raw_alias: Optional[str], unlocking: bool = False) -> None:
    new_alias = (raw_alias or "").strip().lower() or None
    if new_alias == user.qr_alias:
        return
    if user.qr_alias_locked and not unlocking:
        raise ValidationError(ALIAS_LOCKED_ERROR)
    if new_alias is not None:
        if not validate_qr_alias(new_alias):
            raise ValidationError(ALIAS_FORMAT_ERROR)
        if users_crud.alias_taken(db, new_alias, exclude_user_id=user.id):
            raise ValidationError(f'QR alias "{new_alias}" is already in use by another guest')
    user.qr_alias = new_alias


def _apply_personalization(user: User, fields: dict) -> None:
    """Aplica campos de personalización ya filtrados (sin qr_alias)."""
    for field, limit in TEXT_LIMITS.items():
        if field in fields:
            setattr(user, field, optional_text(fields[field], field, limit))
    if "guest_group" in fields:
        user.guest_group = validate_guest_group(fields["guest_group"])
    if fields.get("plus_one_allowed") is not None:
        user.plus_one_allowed = bool(fields["plus_one_allowed"])
    if fields.get("household_members") is not None:
        user.household_members = [
            HouseholdMember(
                first_name=m["first_name"],
                last_name=m["last_name"],
                relationship_to_bride=optional_text(m.get("relationship_to_bride"), "relationship_to_bride", 100),
                relationship_to_groom=optional_text(m.get("relationship_to_groom"), "relationship_to_groom", 100),
            )
            for m in fields["household_members"]
        ]


# =================================================================================
# 👤 Usuarios
# =================================================================================
def admin_create_user(db: Session, data: AdminCreateUser) -> User:
    name = validate_name(data.full_name, "Full name")
    email = validate_email(data.email)
    if users_crud.get_by_email(db, email):
        raise ValidationError("A user with this email already exists")

    address = {f: optional_text(getattr(data, f), f, TEXT_LIMITS[f]) for f in ADDRESS_FIELDS}
    user = users_crud.create(db, full_name=name, email=email, is_invited=data.is_invited, **address)

    try:
        qr.generate_qr_png(user)
    except Exception as e:
        # El usuario ya existe; el PNG se puede regenerar desde el panel
        logger.warning("No se pudo generar el QR para {}: {}", users_crud.mask_email(email), e)
    return user


def admin_update_user(db: Session, user_id: int, data: AdminUpdateUser) -> User:
    user = _get_user(db, user_id)
    fields = data.model_dump(exclude_unset=True)

    if fields.get("full_name") is not None:
        user.full_name = validate_name(data.full_name, "Full name")
    if fields.get("email") is not None:
        email = validate_email(data.email)
        other = users_crud.get_by_email(db, email)
        if other is not None and other.id != user.id:
            raise ValidationError("A user with this email already exists")
        user.email = email
    if fields.get("is_invited") is not None:
        user.is_invited = data.is_invited
    for field in ADDRESS_FIELDS:
        if field in fields:
            setattr(user, field, optional_text(fields[field], field, TEXT_LIMITS[field]))

    lock = fields.get("qr_alias_locked")
    if "qr_alias" in fields:
        _apply_alias_change(db, user, data.qr_alias, unlocking=lock is False)
    if lock is not None:
        if lock and not user.qr_alias:
            raise ValidationError(
                "Cannot lock QR alias: no alias is currently set. Set an alias first."
            )
        user.qr_alias_locked = lock

    _commit(db, user, "update user")
    logger.info("Usuario actualizado por admin → id={}", user.id)
    return user


def admin_update_user_personalization(db: Session, user_id: int, data: PersonalizationIn) -> User:
    user = _get_user(db, user_id)
    fields = data.model_dump(exclude_unset=True)
    if "qr_alias" in fields:
        _apply_alias_change(db, user, fields.pop("qr_alias"))
    _apply_personalization(user, fields)
    _commit(db, user, "update personalization")
    return user


def admin_delete_user(db: Session, user_id: int) -> bool:
    user = _get_user(db, user_id)
    if user.is_admin:
        raise ForbiddenError("Cannot delete admin users")
    email = user.email
    try:
        db.delete(user)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error de BD al borrar usuario {}: {}", user_id, e)
        raise RuntimeError("Failed to delete user") from e
    logger.info("Usuario eliminado → id={} email={}", user_id, users_crud.mask_email(email))
    return True


# =================================================================================
# 📋 RSVP desde el panel
# =================================================================================
def admin_update_rsvp(db: Session, user_id: int, data: AdminRSVPUpdate) -> RSVP:
    user = _get_user(db, user_id)
    rsvp = user.rsvp
    if rsvp is None:
        rsvp = RSVP(user_id=user.id, attending=AttendanceEnum.MAYBE, guest_count=1)
    apply_rsvp_changes(rsvp, user, data)
    user.rsvp = rsvp
    user.has_rsvped = True
    db.add(user)
    _commit(db, rsvp, "update RSVP")
    return rsvp


def admin_delete_rsvp(db: Session, user_id: int) -> bool:
    user = _get_user(db, user_id)
    user.rsvp = None
    user.has_rsvped = False
    _commit(db, user, "delete RSVP")
    return True


# =================================================================================
# 📦 Personalización masiva
# =================================================================================
def bulk_update_personalization(db: Session, items: List[BulkPersonalizationItem]) -> dict:
    """
    Upsert por email. Un error de fila nunca aborta el lote: se acumula en `errors`.
    Los cambios de alias sobre un alias bloqueado se omiten con un aviso.
    """
    created = updated = failed = 0
    errors: List[dict] = []
    warnings: List[str] = []

    for item in items:
        try:
            email = validate_email(item.email)
            fields = item.personalization.model_dump(exclude_unset=True)
            user = users_crud.get_by_email(db, email)
            is_new = user is None
            if is_new:
                if not (item.full_name or "").strip():
                    raise ValidationError("User not found and cannot create without Name")
                user = users_crud.create(
                    db,
                    full_name=validate_name(item.full_name, "Full name"),
                    email=email,
                    commit_immediately=False,
                )
            elif (item.full_name or "").strip():
                user.full_name = validate_name(item.full_name, "Full name")

            if "qr_alias" in fields:
                alias = (fields.pop("qr_alias") or "").strip().lower() or None
                if user.qr_alias_locked and alias != user.qr_alias:
                    warnings.append(f"{email}: QR alias is locked; alias change skipped")
                elif alias is None:
                    user.qr_alias = None
                elif alias != user.qr_alias:
                    if not validate_qr_alias(alias):
                        raise ValidationError(ALIAS_FORMAT_ERROR)
                    if users_crud.alias_taken(db, alias, exclude_user_id=user.id):
                        raise ValidationError(f'QR alias "{alias}" is already in use')
                    user.qr_alias = alias

            _apply_personalization(user, fields)
            db.add(user)
            db.commit()
            if is_new:
                created += 1
            else:
                updated += 1
        except Exception as e:
            db.rollback()
            failed += 1
            message = getattr(e, "message", None) or str(e)
            errors.append({"email": item.email, "error": message})
            logger.warning("Personalización masiva: fila {} falló: {}", users_crud.mask_email(item.email), message)

    logger.info(
        "Personalización masiva → created={} updated={} failed={}", created, updated, failed
    )
    return {
        "success": failed == 0,
        "created": created,
        "updated": updated,
        "failed": failed,
        "errors": errors,
        "warnings": warnings,
    }


def import_personalization_csv(db: Session, text: str) -> dict:
    items, parse_errors = parse_personalization_csv(text)
    result = bulk_update_personalization(db, [BulkPersonalizationItem(**i) for i in items])
    result["parse_errors"] = parse_errors
    result["success"] = result["success"] and not parse_errors
    return result


# =================================================================================
# 🔳 Códigos QR
# =================================================================================
def regenerate_qr_codes(db: Session) -> dict:
    users = db.query(User).order_by(User.id).all()
    result = qr.generate_qr_pngs(users)
    logger.info("QR regenerados → ok={} fallos={}", result["success"], result["failed"])
    return result


def qr_code_png(db: Session, user_id: int) -> bytes:
    user = _get_user(db, user_id)
    buf = io.BytesIO()
    qr.make_qr_image(qr.build_login_url(user.qr_token)).save(buf)
    return buf.getvalue()


def assign_missing_qr_aliases(db: Session) -> List[dict]:
    """Asigna '<apellido>-family' (único) a los usuarios sin alias; devuelve los cambios."""
    taken = [a for (a,) in db.query(User.qr_alias).filter(User.qr_alias.isnot(None)).all()]
    changes = []
    for user in db.query(User).filter(User.qr_alias.is_(None)).order_by(User.id).all():
        alias = qr.generate_unique_qr_alias(user.full_name, taken)
        taken.append(alias)
        user.qr_alias = alias
        changes.append({"full_name": user.full_name, "qr_token": user.qr_token, "qr_alias": alias})
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error de BD al asignar alias QR: {}", e)
        raise RuntimeError("Failed to assign QR aliases") from e
    logger.info("Alias QR asignados → {}", len(changes))
    return changes


def ensure_admin(db: Session, email: str, full_name: str = "Admin User") -> User:
    """Crea (o promueve) un usuario administrador; idempotente."""
    norm_email = validate_email(email)
    user = users_crud.get_by_email(db, norm_email)
    if user is None:
        return users_crud.create(
            db, full_name=validate_name(full_name, "Full name"), email=norm_email, is_admin=True
        )
    if not user.is_admin:
        user.is_admin = True
        _commit(db, user, "promote admin")
    return user
