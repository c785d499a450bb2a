# weddingsite/services/reminder_service.py
# =================================================================================
# ⏰ RECORDATORIOS DE RSVP
# - Destinatarios: invitados sin RSVP que no son administradores.
# - Cada envío queda registrado en email_jobs (estado, intentos, último error).
# - Un envío fallido se reporta en el resultado; no hay cola de reintentos.
# =================================================================================

from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weddingsite import mailer
from weddingsite.crud import users_crud
from weddingsite.errors import ValidationError
from weddingsite.models import EmailJob, EmailStatusEnum, User

REMINDER_TEMPLATE = "rsvp_reminder"
SEND_ERROR = "Failed to send email"


def _pending_reason(user: User) -> Optional[str]:
    if user.is_admin:
        return "Admin users do not receive reminders"
    if not user.is_invited:
        return "User is not invited"
    if user.has_rsvped:
        return "User has already RSVPed"
    return None


def _save_job(db: Session, job: EmailJob) -> None:
    # El historial es auxiliar: un fallo de BD aquí no anula el envío
    try:
        db.add(job)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("No se pudo guardar el registro de correo ({}): {}", job.template, e)


def _send(db: Session, user: User) -> dict:
    job = EmailJob(user_id=user.id, template=REMINDER_TEMPLATE, status=EmailStatusEnum.pending, attempts=0)
    _save_job(db, job)

    ok = mailer.send_rsvp_reminder_email(user.email, user.full_name, user.qr_token)

    job.attempts = (job.attempts or 0) + 1
    if ok:
        job.status = EmailStatusEnum.sent
        job.sent_at = datetime.utcnow()
        job.last_error = None
    else:
        job.status = EmailStatusEnum.failed
        job.last_error = SEND_ERROR
    _save_job(db, job)

    return {
        "success": ok,
        "email": user.email,
        "error": None if ok else SEND_ERROR,
    }


def send_reminder(db: Session, user_id: int) -> dict:
    user = users_crud.get_by_id(db, user_id)
    if user is None:
        raise ValidationError("User not found")
    reason = _pending_reason(user)
    if reason:
        return {"success": False, "email": user.email, "error": reason}
    return _send(db, user)


def send_bulk_reminders(db: Session, user_ids: Optional[List[int]] = None) -> dict:
    recipients = users_crud.list_pending_rsvp(db)
    if user_ids is not None:
        wanted = set(user_ids)
        recipients = [u for u in recipients if u.id in wanted]

    results = [_send(db, u) for u in recipients]
    success_count = sum(1 for r in results if r["success"])
    logger.info(
        "Recordatorios enviados → total={} ok={} fallos={}",
        len(results), success_count, len(results) - success_count,
    )
    return {
        "total_sent": len(results),
        "success_count": success_count,
        "failure_count": len(results) - success_count,
        "results": results,
    }


# ---------------------------------------------------------------------------------
# 📜 Historial
# ---------------------------------------------------------------------------------
def _job_row(job: EmailJob) -> dict:
    user = job.user
    return {
        "id": job.id,
        "user_id": job.user_id,
        "user_email": user.email if user else "deleted@unknown.com",
        "user_name": user.full_name if user else "Deleted User",
        "template": job.template,
        "status": job.status.value if isinstance(job.status, EmailStatusEnum) else job.status,
        "attempts": job.attempts,
        "last_error": job.last_error,
        "created_at": job.created_at,
        "sent_at": job.sent_at,
    }


def get_email_history(
    db: Session,
    limit: int = 50,
    status: Optional[str] = None,
    user_id: Optional[int] = None,
) -> List[dict]:
    """Envíos más recientes primero; filtro opcional por estado y por usuario."""
    query = db.query(EmailJob)
    if status:
        try:
            query = query.filter(EmailJob.status == EmailStatusEnum(status.strip().lower()))
        except ValueError as e:
            allowed = ", ".join(s.value for s in EmailStatusEnum)
            raise ValidationError(f"Email status must be one of: {allowed}") from e
    if user_id is not None:
        if users_crud.get_by_id(db, user_id) is None:
            raise ValidationError("User not found")
        query = query.filter(EmailJob.user_id == user_id)
    jobs = query.order_by(EmailJob.created_at.desc(), EmailJob.id.desc()).limit(limit).all()
    return [_job_row(j) for j in jobs]
