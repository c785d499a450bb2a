# weddingsite/models.py
# =================================================================================
# 🏛️ MODELOS ORM (SQLAlchemy)
# ---------------------------------------------------------------------------------
# - User: invitado (o admin) con token QR, alias QR opcional y personalización.
# - HouseholdMember: miembros del hogar del invitado (viven con el User).
# - RSVP: respuesta única por usuario, con lista ordenada de invitados (RSVPGuest).
# - EmailJob: registro de cada envío de correo (plantilla, estado, intentos).
# =================================================================================

from datetime import datetime
import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    func,
    Enum as SQLAlchemyEnum,
)
from sqlalchemy.orm import relationship

from weddingsite.db import Base


# 🗂️ ENUMS
# ---------------------------------------------------------------------------------
class AttendanceEnum(str, enum.Enum):
    YES = "YES"
    NO = "NO"
    MAYBE = "MAYBE"


class GuestGroupEnum(str, enum.Enum):
    grooms_family = "grooms_family"
    brides_family = "brides_family"
    friends = "friends"
    extended_family = "extended_family"
    other = "other"


class EmailStatusEnum(str, enum.Enum):
    pending = "pending"
    retrying = "retrying"
    sent = "sent"
    failed = "failed"


# 🤵👰 USUARIOS (TABLA 'users')
# ---------------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(254), unique=True, index=True, nullable=False)
    full_name = Column(String(120), index=True, nullable=False)

    is_admin = Column(Boolean, default=False, nullable=False)
    is_invited = Column(Boolean, default=True, nullable=False)
    has_rsvped = Column(Boolean, default=False, nullable=False)

    # Credenciales QR
    qr_token = Column(String(64), unique=True, index=True, nullable=False)
    qr_alias = Column(String(50), unique=True, index=True, nullable=True)
    qr_alias_locked = Column(Boolean, default=False, nullable=False)

    # Personalización
    relationship_to_bride = Column(String(100), nullable=True)
    relationship_to_groom = Column(String(100), nullable=True)
    custom_welcome_message = Column(String(500), nullable=True)
    guest_group = Column(SQLAlchemyEnum(GuestGroupEnum), nullable=True)
    plus_one_allowed = Column(Boolean, default=False, nullable=False)
    personal_photo = Column(String(500), nullable=True)
    special_instructions = Column(String(500), nullable=True)
    dietary_restrictions = Column(String(500), nullable=True)

    # Dirección postal
    street_address = Column(String(200), nullable=True)
    address_line2 = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    household_members = relationship(
        "HouseholdMember",
        cascade="all, delete-orphan",
        back_populates="user",
        order_by="HouseholdMember.id",
        lazy="selectin",
    )
    rsvp = relationship(
        "RSVP",
        uselist=False,
        cascade="all, delete-orphan",
        back_populates="user",
        lazy="selectin",
    )
    # Sin cascada de borrado: al eliminar el usuario, email_jobs.user_id queda a NULL
    email_jobs = relationship("EmailJob", back_populates="user", order_by="EmailJob.id")

    @property
    def rsvp_id(self):
        return self.rsvp.id if self.rsvp else None


# 👪 MIEMBROS DEL HOGAR (TABLA 'household_members')
# ---------------------------------------------------------------------------------
class HouseholdMember(Base):
    __tablename__ = "household_members"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    relationship_to_bride = Column(String(100), nullable=True)
    relationship_to_groom = Column(String(100), nullable=True)

    user = relationship("User", back_populates="household_members")


# 📋 RSVP (TABLA 'rsvps')
# ---------------------------------------------------------------------------------
class RSVP(Base):
    __tablename__ = "rsvps"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False)
    attending = Column(SQLAlchemyEnum(AttendanceEnum), nullable=False, default=AttendanceEnum.MAYBE)
    guest_count = Column(Integer, default=1, nullable=False)
    additional_notes = Column(Text, nullable=True)

    # Campos legados: reflejan al primer invitado de la lista
    full_name = Column(String(120), nullable=True)
    meal_preference = Column(String(32), nullable=True)
    allergies = Column(String(200), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="rsvp")
    guests = relationship(
        "RSVPGuest",
        cascade="all, delete-orphan",
        back_populates="rsvp",
        order_by="RSVPGuest.position",
        lazy="selectin",
    )


class RSVPGuest(Base):
    __tablename__ = "rsvp_guests"

    id = Column(Integer, primary_key=True, index=True)
    rsvp_id = Column(Integer, ForeignKey("rsvps.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, default=0, nullable=False)
    full_name = Column(String(120), nullable=False)
    meal_preference = Column(String(32), nullable=True)
    allergies = Column(String(200), nullable=True)

    rsvp = relationship("RSVP", back_populates="guests")


# ✉️ HISTORIAL DE CORREOS (TABLA 'email_jobs')
# ---------------------------------------------------------------------------------
class EmailJob(Base):
    __tablename__ = "email_jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    template = Column(String(50), nullable=False)
    status = Column(
        SQLAlchemyEnum(EmailStatusEnum), nullable=False, default=EmailStatusEnum.pending, index=True
    )
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)
    sent_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="email_jobs", lazy="joined")
