# scripts/import_guests.py
# =============================================================================
# 🚚 Importador de personalización de invitados hacia el backend.
# - Valida el CSV localmente con weddingsite.utils.csv_import (mismas reglas
#   que el endpoint de importación).
# - Envía las filas válidas en lotes a POST /api/admin/personalization/bulk.
# - Autenticación: ADMIN_API_KEY (cabecera x-admin-key).
# =============================================================================

import argparse
import json
import os
import sys
from pathlib import Path

import requests
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env")

from weddingsite.utils.csv_import import parse_personalization_csv  # noqa: E402

API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")
ENDPOINT = f"{API_BASE_URL.rstrip('/')}/api/admin/personalization/bulk"


def post_batch(items: list[dict], timeout: int = 60) -> dict:
    """Envía un lote y devuelve el JSON de respuesta; RuntimeError si no es 200."""
    headers = {"Content-Type": "application/json", "x-admin-key": ADMIN_API_KEY}
    resp = requests.post(ENDPOINT, headers=headers, data=json.dumps({"items": items}), timeout=timeout)
    if resp.status_code != 200:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        raise RuntimeError(f"HTTP {resp.status_code} - {detail}")
    return resp.json()


def import_items(items: list[dict], batch_size: int = 200) -> dict:
    """Envía en lotes; un lote fallido se anota y el resto continúa."""
    batch_size = max(1, batch_size)
    summary = {"created": 0, "updated": 0, "failed": 0, "errors": [], "warnings": []}
    for i in range(0, len(items), batch_size):
        chunk = items[i:i + batch_size]
        number = i // batch_size + 1
        try:
            result = post_batch(chunk)
            summary["created"] += int(result.get("created", 0))
            summary["updated"] += int(result.get("updated", 0))
            summary["failed"] += int(result.get("failed", 0))
            summary["errors"].extend(f"{e['email']}: {e['error']}" for e in result.get("errors", []))
            summary["warnings"].extend(result.get("warnings", []))
            print(f"   ✓ Lote {number}: +{result.get('created', 0)} creados, "
                  f"+{result.get('updated', 0)} actualizados, {result.get('failed', 0)} fallidos")
        except (requests.RequestException, RuntimeError) as e:
            msg = f"Lote {number} (filas {i + 1}-{min(i + batch_size, len(items))}): {e}"
            print(f"   ✗ {msg}")
            summary["errors"].append(msg)
            summary["failed"] += len(chunk)
    return summary


def main():
    parser = argparse.ArgumentParser(description="Importa la personalización de invitados desde un CSV.")
    parser.add_argument("file", help="Ruta al archivo .csv")
    parser.add_argument("--encoding", default="utf-8-sig", help="Encoding del CSV (por defecto utf-8-sig)")
    parser.add_argument("--batch", type=int, default=200, help="Tamaño de lote (por defecto 200)")
    parser.add_argument("--strict", action="store_true", help="No envía nada si hay errores de validación")
    parser.add_argument("--dry-run", action="store_true", help="Solo valida y muestra vista previa")
    args = parser.parse_args()

    print(f"📥 Cargando archivo: {args.file}")
    text = Path(args.file).read_text(encoding=args.encoding)
    items, errors = parse_personalization_csv(text)

    if errors:
        print("⚠️  Errores de validación:")
        print(" - " + "\n - ".join(errors))
        if args.strict:
            sys.exit(1)
    if not items:
        print("⛔ No hay filas válidas para importar.")
        sys.exit(1)

    print(f"📦 Filas preparadas para importar: {len(items)}")
    if args.dry_run:
        print("🧪 DRY-RUN activo: no se enviará nada al backend.")
        print(json.dumps(items[:3], indent=2, ensure_ascii=False))
        sys.exit(0)

    if not ADMIN_API_KEY:
        print("❌ Falta ADMIN_API_KEY en el entorno.")
        sys.exit(1)

    print(f"➡️  Importando en lotes de {args.batch} hacia {ENDPOINT}")
    summary = import_items(items, args.batch)
    print("\n✅ Resumen de importación:")
    print(json.dumps(summary, indent=2, ensure_ascii=False))
    if summary["errors"]:
        print("\n⚠️  Hubo errores. Revisa el detalle arriba.")


if __name__ == "__main__":
    main()
