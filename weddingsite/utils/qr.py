# weddingsite/utils/qr.py
# =================================================================================
# 🔳 TOKENS, ALIAS E IMÁGENES QR
# ---------------------------------------------------------------------------------
# - generate_qr_token: token aleatorio no adivinable (secrets + marca temporal).
# - generate_qr_alias / generate_unique_qr_alias: alias legible "<apellido>-family".
# - generate_qr_png: PNG con la URL de login (librería qrcode), uno por invitado.
# =================================================================================

import re
import secrets
import time
import unicodedata
from pathlib import Path
from typing import Iterable, Optional

import qrcode
from loguru import logger

from weddingsite import config

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_qr_token() -> str:
    """'<32 hex>-<timestamp ms en base36>'; cumple el formato [a-z0-9-]{3,50}."""
    return f"{secrets.token_hex(16)}-{_to_base36(int(time.time() * 1000))}"


def _slug(text: str, keep_hyphens: bool = False) -> str:
    """Minúsculas, sin acentos, solo [a-z0-9] (y guiones simples si keep_hyphens)."""
    txt = unicodedata.normalize("NFKD", text or "")
    txt = "".join(ch for ch in txt if not unicodedata.combining(ch)).lower()
    if not keep_hyphens:
        return re.sub(r"[^a-z0-9]", "", txt)
    txt = re.sub(r"-+", "-", re.sub(r"[^a-z0-9-]", "", txt))
    return txt.strip("-")


def generate_qr_alias(full_name: str) -> str:
    """'Jane Smith' → 'smith-family'; si no hay apellido usable → 'guest-family'."""
    parts = [p for p in (full_name or "").split() if p]
    last = _slug(parts[-1], keep_hyphens=True) if parts else ""
    return f"{last or 'guest'}-family"


def generate_unique_qr_alias(full_name: str, existing: Iterable[str]) -> str:
    """Añade sufijos -2, -3, ... hasta encontrar un alias libre."""
    taken = set(existing)
    base = generate_qr_alias(full_name)
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def build_login_url(qr_token: str) -> str:
    return f"{config.FRONTEND_URL}/login/qr/{qr_token}"


def _png_filename(user) -> str:
    name = _slug(user.full_name) or "guest"
    email = re.sub(r"[^a-z0-9]", "_", (user.email or "").lower())
    return f"{name}_{email}_{user.id}.png"


def output_dir() -> Path:
    """Directorio de salida: QR_CODES_DIR/<entorno>/ (se crea si no existe)."""
    path = Path(config.QR_CODES_DIR) / config.ENVIRONMENT
    path.mkdir(parents=True, exist_ok=True)
    return path


def make_qr_image(data: str):
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr.make_image(fill_color="black", back_color="white")


def generate_qr_png(user, directory: Optional[Path] = None) -> Path:
    """Genera el PNG del invitado y devuelve su ruta."""
    if not user.qr_token:
        raise ValueError(f"User {user.id} has no QR token")
    target = (directory or output_dir()) / _png_filename(user)
    make_qr_image(build_login_url(user.qr_token)).save(str(target))
    logger.debug("QR generado → {}", target)
    return target


def generate_qr_pngs(users, directory: Optional[Path] = None) -> dict:
    """Genera PNGs para varios usuarios; un fallo no detiene al resto."""
    success, failed, errors = 0, 0, []
    for user in users:
        try:
            generate_qr_png(user, directory)
            success += 1
        except Exception as e:
            failed += 1
            errors.append(f"{user.email}: {e}")
            logger.warning("No se pudo generar QR para {}: {}", user.email, e)
    return {"success": success, "failed": failed, "errors": errors}
