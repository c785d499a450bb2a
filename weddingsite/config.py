# weddingsite/config.py
# =================================================================================
# ⚙️ CONFIGURACIÓN CENTRAL (variables de entorno)
# ---------------------------------------------------------------------------------
# - Carga el .env de la raíz del proyecto (python-dotenv) una sola vez.
# - Expone constantes de módulo leídas con os.getenv y defaults de desarrollo.
# - Falla rápido si falta JWT_SECRET fuera de development/test.
# =================================================================================

import os
from pathlib import Path
from dotenv import load_dotenv

# --- Carga de .env (no sobrescribe variables ya definidas en el entorno) ---
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / ".env", override=False)


def _as_bool(raw: str | None, default: bool = False) -> bool:
    """Interpreta '1/true/yes/on' como True (case-insensitive)."""
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _as_list(raw: str | None) -> list[str]:
    """Convierte 'a, b ,c' en ['a', 'b', 'c'] ignorando vacíos."""
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


# --- Entorno ---
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").strip().lower()
IS_PRODUCTION = ENVIRONMENT == "production"
IS_TEST = ENVIRONMENT == "test"

# --- JWT ---
JWT_SECRET = os.getenv("JWT_SECRET", "").strip()
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(7 * 24 * 60)))  # 7 días

if not JWT_SECRET:
    if ENVIRONMENT in ("development", "test"):
        JWT_SECRET = "dev_secret"
    else:
        raise RuntimeError("JWT_SECRET no está configurado (obligatorio fuera de development/test).")

# --- Frontend / CORS ---
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
FRONTEND_URLS = _as_list(os.getenv("FRONTEND_URLS")) or [
    FRONTEND_URL,
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# --- Funcionalidades ---
MEAL_PREFERENCES_ENABLED = _as_bool(os.getenv("ENABLE_MEAL_PREFERENCES"), default=True)

# --- QR ---
QR_CODES_DIR = Path(os.getenv("QR_CODES_DIR", str(PROJECT_ROOT / "qr-codes")))

# --- Logs ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Admin por API key (scripts/CLI) ---
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")

# --- Rate limit (valores por defecto; ver rate_limit.get_limits_from_env) ---
API_RL_DEFAULT_MAX = 100
API_RL_DEFAULT_WINDOW = 15 * 60
LOGIN_RL_DEFAULT_MAX = 10
LOGIN_RL_DEFAULT_WINDOW = 60

# --- Versión de la sesión del cliente ---
AUTH_VERSION = os.getenv("AUTH_VERSION", "1")
