# weddingsite/utils/validation.py
# =================================================================================
# ✅ VALIDACIÓN Y SANEAMIENTO DE ENTRADAS
# ---------------------------------------------------------------------------------
# Funciones puras usadas por los servicios. Devuelven el valor normalizado o
# lanzan ValidationError con un mensaje apto para mostrar al usuario.
# =================================================================================

import re
from typing import Optional

from email_validator import EmailNotValidError
from email_validator import validate_email as _check_email

from weddingsite.errors import ValidationError

# Letras (incluye acentos), espacios, guiones y apóstrofes
NAME_RE = re.compile(r"^[^\W\d_]+(?:[\s'\-][^\W\d_]*)*$", re.UNICODE)
QR_TOKEN_RE = re.compile(r"^[a-z0-9-]{3,50}$", re.IGNORECASE)
QR_ALIAS_RE = re.compile(r"^[a-z0-9-]{3,50}$")

ATTENDANCE_VALUES = ("YES", "NO", "MAYBE")
MEAL_PREFERENCES = ("chicken", "beef", "fish", "vegetarian", "vegan", "kids")
GUEST_GROUPS = ("grooms_family", "brides_family", "friends", "extended_family", "other")

MAX_EMAIL_LENGTH = 254
MIN_GUESTS, MAX_GUESTS = 1, 10


def is_valid_email(email: str) -> bool:
    """Sintaxis de email según email-validator (sin consultar DNS)."""
    try:
        _check_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_email(email: Optional[str]) -> str:
    value = (email or "").strip().lower()
    if not value:
        raise ValidationError("Email is required")
    if len(value) > MAX_EMAIL_LENGTH:
        raise ValidationError("Email is too long")
    if not is_valid_email(value):
        raise ValidationError("Invalid email format")
    return value


def validate_name(name: Optional[str], field_name: str = "Name") -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError(f"{field_name} is required")
    if len(value) < 2:
        raise ValidationError(f"{field_name} must be at least 2 characters long")
    if len(value) > 100:
        raise ValidationError(f"{field_name} is too long")
    if not NAME_RE.match(value):
        raise ValidationError(f"{field_name} contains invalid characters")
    return value


def validate_attendance(value: Optional[str]) -> str:
    normalized = (value or "").strip().upper()
    if normalized not in ATTENDANCE_VALUES:
        raise ValidationError("Invalid attendance status")
    return normalized


def validate_guest_count(count) -> int:
    # bool es subclase de int: se rechaza explícitamente
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValidationError("Guest count must be between 1 and 10")
    if count < MIN_GUESTS or count > MAX_GUESTS:
        raise ValidationError("Guest count must be between 1 and 10")
    return count


def validate_meal_preference(
    preference: Optional[str],
    attending: Optional[str] = None,
    enabled: bool = True,
) -> Optional[str]:
    """
    Normaliza la preferencia de comida a minúsculas.
    - Vacía → None, salvo que se asista (YES) y la funcionalidad esté activa.
    - Si viene informada, debe pertenecer a MEAL_PREFERENCES.
    """
    value = (preference or "").strip().lower()
    if not value:
        if enabled and (attending or "").upper() == "YES":
            raise ValidationError("Meal preference is required")
        return None
    if value not in MEAL_PREFERENCES:
        raise ValidationError("Invalid meal preference")
    return value


def sanitize_text(text: Optional[str], max_length: int = 500) -> str:
    """Recorta, limita longitud y elimina los caracteres < > \" '."""
    value = (text or "").strip()
    if len(value) > max_length:
        raise ValidationError(f"Text is too long (max {max_length} characters)")
    return re.sub(r"[<>\"']", "", value)


def validate_qr_token(token: Optional[str]) -> str:
    value = (token or "").strip()
    if not value:
        raise ValidationError("QR token is required")
    if not QR_TOKEN_RE.match(value):
        raise ValidationError("Invalid QR token format")
    return value


def validate_qr_alias(alias: Optional[str]) -> bool:
    """True si el alias es válido: [a-z0-9-], 3-50 caracteres, sin guion al inicio/fin."""
    if not alias:
        return False
    if not QR_ALIAS_RE.match(alias):
        return False
    return not (alias.startswith("-") or alias.endswith("-"))


def validate_guest_group(group: Optional[str]) -> Optional[str]:
    value = (group or "").strip()
    if not value:
        return None
    if value not in GUEST_GROUPS:
        raise ValidationError(f"Guest group must be one of: {', '.join(GUEST_GROUPS)}")
    return value


def optional_text(value: Optional[str], field_name: str, max_length: int) -> Optional[str]:
    """Texto libre opcional: recortado, None si queda vacío, error si excede max_length."""
    cleaned = (value or "").strip()
    if not cleaned:
        return None
    if len(cleaned) > max_length:
        raise ValidationError(f"{field_name} must be {max_length} characters or less")
    return cleaned
