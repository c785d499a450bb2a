# weddingsite/routers/admin.py
# =============================================================================
# 👑 Rutas de administración
# - Protegidas con `require_admin` (JWT de admin o cabecera x-admin-key)
# - Estadísticas, listado, exportación CSV
# - CRUD de usuarios y de su RSVP, personalización (individual / masiva / CSV)
# - QR (PNG individual y regeneración), recordatorios e historial de emails
# =============================================================================

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from weddingsite import schemas
from weddingsite.core.security import require_admin
from weddingsite.db import get_db
from weddingsite.errors import ValidationError
from weddingsite.services import admin_service, reminder_service

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


# ------------------------------- Lectura --------------------------------------
@router.get("/stats", response_model=schemas.WeddingStats)
def wedding_stats(db: Session = Depends(get_db)):
    return admin_service.get_wedding_stats(db)


@router.get("/users", response_model=List[schemas.UserWithRSVP])
def all_users_with_rsvps(db: Session = Depends(get_db)):
    return admin_service.get_all_users_with_rsvps(db)


@router.get("/export")
def export_guest_list(db: Session = Depends(get_db)):
    return Response(
        content=admin_service.export_guest_list_csv(db),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="guest-list.csv"'},
    )


# ------------------------------- Usuarios -------------------------------------
@router.post("/users", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: schemas.AdminCreateUser, db: Session = Depends(get_db)):
    return admin_service.admin_create_user(db, payload)


@router.patch("/users/{user_id}", response_model=schemas.UserOut)
def update_user(user_id: int, payload: schemas.AdminUpdateUser, db: Session = Depends(get_db)):
    return admin_service.admin_update_user(db, user_id, payload)


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    return {"deleted": admin_service.admin_delete_user(db, user_id)}


@router.patch("/users/{user_id}/personalization", response_model=schemas.UserOut)
def update_personalization(user_id: int, payload: schemas.PersonalizationIn, db: Session = Depends(get_db)):
    return admin_service.admin_update_user_personalization(db, user_id, payload)


# --------------------------------- RSVP ---------------------------------------
@router.put("/users/{user_id}/rsvp", response_model=schemas.RSVPOut)
def update_user_rsvp(user_id: int, payload: schemas.AdminRSVPUpdate, db: Session = Depends(get_db)):
    return admin_service.admin_update_rsvp(db, user_id, payload)


@router.delete("/users/{user_id}/rsvp")
def delete_user_rsvp(user_id: int, db: Session = Depends(get_db)):
    return {"deleted": admin_service.admin_delete_rsvp(db, user_id)}


# ---------------------------- Personalización masiva --------------------------
@router.post("/personalization/bulk", response_model=schemas.BulkPersonalizationResult)
def bulk_personalization(payload: schemas.BulkPersonalizationPayload, db: Session = Depends(get_db)):
    return admin_service.bulk_update_personalization(db, payload.items)


@router.post("/personalization/import-csv", response_model=schemas.CsvImportResult)
async def import_personalization_csv(file: UploadFile = File(...), db: Session = Depends(get_db)):
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError("CSV file must be UTF-8 encoded") from e
    return admin_service.import_personalization_csv(db, text)


# ----------------------------------- QR ---------------------------------------
@router.get("/users/{user_id}/qr-code")
def user_qr_code(user_id: int, db: Session = Depends(get_db)):
    return Response(content=admin_service.qr_code_png(db, user_id), media_type="image/png")


@router.post("/qr-codes/regenerate", response_model=schemas.QRRegenerateResult)
def regenerate_qr_codes(db: Session = Depends(get_db)):
    return admin_service.regenerate_qr_codes(db)


# ------------------------------ Recordatorios ---------------------------------
@router.post("/users/{user_id}/reminder", response_model=schemas.ReminderResult)
def send_reminder(user_id: int, db: Session = Depends(get_db)):
    return reminder_service.send_reminder(db, user_id)


@router.post("/reminders", response_model=schemas.BulkReminderResult)
def send_bulk_reminders(payload: schemas.BulkReminderPayload, db: Session = Depends(get_db)):
    return reminder_service.send_bulk_reminders(db, payload.user_ids)


@router.get("/emails", response_model=List[schemas.EmailJobOut])
def email_history(
    limit: int = Query(50, ge=1, le=500),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return reminder_service.get_email_history(db, limit=limit, status=status_filter)


@router.get("/users/{user_id}/emails", response_model=List[schemas.EmailJobOut])
def user_email_history(
    user_id: int,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return reminder_service.get_email_history(db, limit=limit, user_id=user_id)
