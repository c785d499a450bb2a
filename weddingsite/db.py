# weddingsite/db.py
# =================================================================================
# 🗄️ CONEXIÓN A LA BASE DE DATOS
# ---------------------------------------------------------------------------------
# SQLite en desarrollo/tests y PostgreSQL en producción. Si DATABASE_URL falta y
# FORCE_DB=postgres, el arranque se aborta en lugar de caer a SQLite.
# =================================================================================

import os
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from loguru import logger

from weddingsite import config

DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
FORCE_DB = os.getenv("FORCE_DB", "postgres" if config.IS_PRODUCTION else "sqlite").strip().lower()

# Placeholder sin resolver del proveedor de despliegue
if DATABASE_URL.startswith("${{") and DATABASE_URL.endswith("}}"):
    logger.warning("DATABASE_URL parece un placeholder sin resolver: {}", DATABASE_URL)
    DATABASE_URL = ""

if not DATABASE_URL:
    if FORCE_DB == "postgres":
        raise RuntimeError(
            "FATAL: DATABASE_URL no está disponible y FORCE_DB=postgres. "
            "Se aborta para evitar un fallback accidental a SQLite en producción."
        )
    logger.warning("DATABASE_URL está vacía. Usando fallback a SQLite local.")
    DATABASE_URL = f"sqlite:///{config.PROJECT_ROOT / 'wedding.db'}"

# Algunos proveedores aún entregan el esquema antiguo 'postgres://'
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

if DATABASE_URL.startswith("sqlite"):
    logger.info("DB in use → SQLite")
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
    )
else:
    logger.info("DB in use → PostgreSQL (o no-SQLite)")
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependencia de FastAPI: una sesión de BD por petición."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def log_db_path_on_startup() -> None:
    """Escribe en los logs qué motor de base de datos se está utilizando al arrancar."""
    url = engine.url
    logger.info("DB driver in use → {}", url.drivername)
    if url.drivername == "sqlite":
        db_file = url.database
        abs_path = os.path.abspath(db_file) if db_file else "<memory>"
        logger.info("DB path → {} (abs={})", db_file, abs_path)


def ping() -> bool:
    """Comprueba que la BD responde (usado por /health/basic)."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("DB ping falló: {}", e)
        return False
