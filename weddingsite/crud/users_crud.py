# weddingsite/crud/users_crud.py
# =================================================================================
# 🧩 CRUD DE USUARIOS
# - Búsquedas por id / email / token QR / alias QR.
# - create() genera un token QR único si no se indica.
# - commit() como helper genérico para persistir y refrescar.
# =================================================================================

from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from weddingsite.models import User
from weddingsite.utils.qr import generate_qr_token

TOKEN_ATTEMPTS = 5


def mask_email(email: Optional[str]) -> str:
    """Enmascara un email para logs. 'test@example.com' -> 'te**@example.com'."""
    if not email:
        return "<empty>"
    if "@" not in email:
        return f"{email[:2]}***"
    user, domain = email.split("@", 1)
    return f"{user[:2]}{'*' * max(len(user) - 2, 0)}@{domain}"


# ---------------------------------------------------------------------------------
# 🔎 Búsquedas
# ---------------------------------------------------------------------------------
def get_by_id(db: Session, user_id: int) -> Optional[User]:
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_by_email(db: Session, email: str) -> Optional[User]:
    if not email:
        return None
    norm = email.strip().lower()
    return db.query(User).filter(func.lower(User.email) == norm).first()


def get_by_qr_token(db: Session, token: str) -> Optional[User]:
    if not token:
        return None
    return db.query(User).filter(User.qr_token == token.strip()).first()


def get_by_qr_alias(db: Session, alias: str) -> Optional[User]:
    if not alias:
        return None
    return db.query(User).filter(User.qr_alias == alias.strip().lower()).first()


def alias_taken(db: Session, alias: str, exclude_user_id: Optional[int] = None) -> bool:
    q = db.query(User.id).filter(User.qr_alias == alias)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return q.first() is not None


def list_invited(db: Session) -> List[User]:
    return db.query(User).filter(User.is_invited.is_(True)).all()


def list_pending_rsvp(db: Session) -> List[User]:
    """Invitados sin RSVP que no son admins (destinatarios de recordatorios)."""
    return (
        db.query(User)
        .filter(
            User.is_invited.is_(True),
            User.has_rsvped.is_(False),
            User.is_admin.is_(False),
        )
        .order_by(User.full_name)
        .all()
    )


# ---------------------------------------------------------------------------------
# 🔐 Token QR único
# ---------------------------------------------------------------------------------
def generate_unique_token(
    db: Session,
    generator: Callable[[], str] = generate_qr_token,
    attempts: int = TOKEN_ATTEMPTS,
) -> str:
    for _ in range(attempts):
        token = generator()
        if get_by_qr_token(db, token) is None:
            return token
    raise RuntimeError(f"Could not generate a unique QR token after {attempts} attempts")


# ---------------------------------------------------------------------------------
# ✍️ Escritura
# ---------------------------------------------------------------------------------
def create(
    db: Session,
    *,
    full_name: str,
    email: str,
    qr_token: Optional[str] = None,
    is_admin: bool = False,
    is_invited: bool = True,
    commit_immediately: bool = True,
    **fields,
) -> User:
    user = User(
        full_name=full_name,
        email=email.strip().lower(),
        qr_token=qr_token or generate_unique_token(db),
        is_admin=is_admin,
        is_invited=is_invited,
        **fields,
    )
    db.add(user)
    if commit_immediately:
        db.commit()
        db.refresh(user)
    else:
        db.flush()
    logger.info("Usuario creado → id={} email={}", user.id, mask_email(user.email))
    return user

