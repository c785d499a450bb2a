# create_db.py

# =================================================================================
# 🏗️ CREACIÓN DE LA BASE DE DATOS (desarrollo)
# ---------------------------------------------------------------------------------
# Crea las tablas de weddingsite.models con create_all (en producción: alembic
# upgrade head). Con --admin-email crea o promueve un administrador y muestra
# su URL de acceso por QR.
# =================================================================================

import argparse

from weddingsite.db import engine, Base, SessionLocal
from weddingsite import models  # noqa: F401  (registra las tablas en Base.metadata)
from weddingsite.services.admin_service import assign_missing_qr_aliases, ensure_admin
from weddingsite.utils.qr import build_login_url


def create_database_tables() -> None:
    print("Creando tablas en la base de datos...")
    Base.metadata.create_all(bind=engine)
    print("✔️ Base de datos y tablas creadas correctamente.")


def main():
    parser = argparse.ArgumentParser(description="Crea tablas y (opcional) un admin")
    parser.add_argument("--admin-email", help="Email del administrador a crear/promover")
    parser.add_argument("--admin-name", default="Admin User", help="Nombre del administrador")
    parser.add_argument("--aliases", action="store_true", help="Asigna alias QR a quien no tenga")
    args = parser.parse_args()

    create_database_tables()

    db = SessionLocal()
    try:
        if args.admin_email:
            admin = ensure_admin(db, args.admin_email, args.admin_name)
            print(f"👑 Admin: {admin.full_name} <{admin.email}>")
            print(f"   Login: {build_login_url(admin.qr_token)}")
        if args.aliases:
            for change in assign_missing_qr_aliases(db):
                print(f"🔗 {change['full_name']:<30} {change['qr_alias']}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
