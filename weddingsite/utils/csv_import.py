# weddingsite/utils/csv_import.py
# =================================================================================
# 📥 PARSEO DEL CSV DE PERSONALIZACIÓN
# ---------------------------------------------------------------------------------
# - Lee el CSV con pandas (todo como texto, celdas vacías → "").
# - Acepta cabeceras camelCase (fullName) o snake_case (full_name).
# - Valida fila a fila y acumula errores "Row N: ..." sin abortar el archivo.
#   N es la línea del archivo (la cabecera es la línea 1).
# =================================================================================

import io
import re
from typing import List, Tuple

import pandas as pd

from weddingsite.utils.validation import GUEST_GROUPS, is_valid_email

# Cabecera camelCase → campo interno
COLUMN_MAP = {
    "fullName": "full_name",
    "email": "email",
    "qrAlias": "qr_alias",
    "relationshipToBride": "relationship_to_bride",
    "relationshipToGroom": "relationship_to_groom",
    "customWelcomeMessage": "custom_welcome_message",
    "guestGroup": "guest_group",
    "plusOneAllowed": "plus_one_allowed",
    "personalPhoto": "personal_photo",
    "specialInstructions": "special_instructions",
    "dietaryRestrictions": "dietary_restrictions",
    "streetAddress": "street_address",
    "addressLine2": "address_line2",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "country": "country",
}
REQUIRED_FIELDS = ("full_name", "email")
PERSONALIZATION_FIELDS = tuple(
    v for v in COLUMN_MAP.values() if v not in ("full_name", "email")
)
MAX_LENGTHS = {
    "relationship_to_bride": 100,
    "relationship_to_groom": 100,
    "custom_welcome_message": 500,
}
_LABELS = {v: k for k, v in COLUMN_MAP.items()}


def _normalize_header(header: str) -> str:
    h = (header or "").strip()
    if h in COLUMN_MAP:
        return COLUMN_MAP[h]
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", h).lower()
    if snake == "address_line_2":
        snake = "address_line2"
    return snake


def _validate_row(row: dict) -> List[str]:
    errors: List[str] = []
    for field in REQUIRED_FIELDS:
        if not row.get(field):
            errors.append(f"{_LABELS[field]} is required")

    email = row.get("email", "")
    if email and not is_valid_email(email):
        errors.append(f"Invalid email format: {email}")

    group = row.get("guest_group", "")
    if group and group not in GUEST_GROUPS:
        errors.append(f"guestGroup must be one of: {', '.join(GUEST_GROUPS)}")

    plus_one = row.get("plus_one_allowed", "").lower()
    if plus_one and plus_one not in ("true", "false"):
        errors.append("plusOneAllowed must be 'true' or 'false'")

    for field, limit in MAX_LENGTHS.items():
        if len(row.get(field, "")) > limit:
            errors.append(f"{_LABELS[field]} must be {limit} characters or less")
    return errors


def _to_item(row: dict) -> dict:
    """Fila validada → ítem de personalización masiva (solo campos no vacíos)."""
    personalization = {}
    for field in PERSONALIZATION_FIELDS:
        value = row.get(field, "")
        if not value:
            continue
        if field == "plus_one_allowed":
            personalization[field] = value.lower() == "true"
        elif field == "qr_alias":
            personalization[field] = value.lower()
        else:
            personalization[field] = value
    return {
        "email": row["email"].lower(),
        "full_name": row["full_name"],
        "personalization": personalization,
    }


def parse_personalization_csv(text: str) -> Tuple[List[dict], List[str]]:
    """Devuelve (items válidos, errores por fila)."""
    if not (text or "").strip():
        return [], ["Row 0: CSV file is empty"]
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        return [], [f"Row 0: Could not parse CSV ({e})"]

    df = df.rename(columns=_normalize_header).fillna("")
    missing = [f for f in REQUIRED_FIELDS if f not in df.columns]
    if missing:
        labels = ", ".join(_LABELS[f] for f in missing)
        return [], [f"Row 0: Missing required columns: {labels}"]

    items: List[dict] = []
    errors: List[str] = []
    for idx, record in enumerate(df.to_dict(orient="records")):
        row = {k: str(v).strip() for k, v in record.items()}
        # Filas vacías se ignoran, pero siguen contando como línea del archivo
        if not any(row.values()):
            continue
        row_errors = _validate_row(row)
        if row_errors:
            errors.append(f"Row {idx + 2}: {'; '.join(row_errors)}")
            continue
        items.append(_to_item(row))
    return items, errors
