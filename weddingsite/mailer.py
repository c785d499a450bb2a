# weddingsite/mailer.py
# =================================================================================
# 📧 ENVÍO DE CORREOS (SendGrid o SMTP)
# ---------------------------------------------------------------------------------
# - Proveedor conmutable con EMAIL_PROVIDER=sendgrid|smtp.
# - DRY_RUN=1 solo registra en logs (valor por defecto: no se envía nada).
# - Plantillas de recordatorio y confirmación de RSVP (texto + HTML).
# - Las funciones públicas devuelven bool y nunca lanzan hacia el llamador.
# =================================================================================

import html
import os
import smtplib
import socket
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from ssl import create_default_context

from loguru import logger
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail

from weddingsite.crud.users_crud import mask_email
from weddingsite.utils.qr import build_login_url


def _settings() -> dict:
    """Lee la configuración en cada envío (permite cambiar .env/monkeypatch sin reiniciar)."""
    user = os.getenv("EMAIL_USER", "")
    return {
        "dry_run": os.getenv("DRY_RUN", "1") == "1",
        "provider": os.getenv("EMAIL_PROVIDER", "sendgrid").lower(),
        "from_email": os.getenv("EMAIL_FROM", user),
        "sender_name": os.getenv("EMAIL_SENDER_NAME", "The Happy Couple"),
        "sendgrid_key": os.getenv("SENDGRID_API_KEY", ""),
        "host": os.getenv("EMAIL_HOST", "smtp.gmail.com"),
        "port": int(os.getenv("EMAIL_PORT", "587")),
        "user": user,
        "password": os.getenv("EMAIL_PASS", ""),
        "timeout": float(os.getenv("SMTP_TIMEOUT", "30")),
    }


def missing_settings() -> list[str]:
    """Variables obligatorias ausentes para el proveedor activo."""
    s = _settings()
    if s["provider"] == "smtp":
        required = {"EMAIL_HOST": s["host"], "EMAIL_USER": s["user"], "EMAIL_PASS": s["password"]}
    else:
        required = {"SENDGRID_API_KEY": s["sendgrid_key"], "EMAIL_FROM": s["from_email"]}
    return [name for name, value in required.items() if not value]


def _smtp_connect_ipv4(host: str, port: int, timeout: float) -> smtplib.SMTP:
    """Conexión SMTP forzando IPv4; 465 → SMTPS, resto → STARTTLS."""
    addrinfo = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
    ipv4_ip = addrinfo[0][4][0]
    if port == 465:
        return smtplib.SMTP_SSL(host=ipv4_ip, port=port, timeout=timeout, context=create_default_context())
    server = smtplib.SMTP(timeout=timeout)
    server.connect(ipv4_ip, port)
    server.ehlo()
    server.starttls(context=create_default_context())
    server.ehlo()
    return server


def check_smtp_connection() -> dict:
    """Verifica credenciales contra el proveedor. Devuelve {ok, provider, latency_ms, error?}."""
    s = _settings()
    started = time.monotonic()
    try:
        if s["provider"] == "smtp":
            server = _smtp_connect_ipv4(s["host"], s["port"], min(s["timeout"], 10.0))
            server.login(s["user"], s["password"])
            server.quit()
        else:
            # La API key se valida consultando el propio perfil de la cuenta
            response = SendGridAPIClient(s["sendgrid_key"]).client.user.profile.get()
            if not 200 <= response.status_code < 300:
                raise RuntimeError(f"SendGrid status {response.status_code}")
        latency = int((time.monotonic() - started) * 1000)
        return {"ok": True, "provider": s["provider"], "latency_ms": latency}
    except Exception as e:
        logger.error("Verificación de correo falló ({}): {}", s["provider"], e)
        latency = int((time.monotonic() - started) * 1000)
        return {"ok": False, "provider": s["provider"], "latency_ms": latency, "error": str(e)}


# =================================================================================
# 🚚 Proveedores
# =================================================================================
def _send_via_smtp(s: dict, to_email: str, subject: str, text_body: str, html_body: str) -> bool:
    if not (s["user"] and s["password"] and s["from_email"]):
        logger.error("SMTP no está configurado (EMAIL_USER/EMAIL_PASS/EMAIL_FROM).")
        return False
    try:
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{s['sender_name']} <{s['from_email']}>"
        msg["To"] = to_email.strip()
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))
        server = _smtp_connect_ipv4(s["host"], s["port"], s["timeout"])
        server.login(s["user"], s["password"])
        server.sendmail(s["from_email"], [msg["To"]], msg.as_string())
        server.quit()
        logger.info("SMTP → enviado a {}", mask_email(to_email))
        return True
    except Exception as e:
        logger.exception("SMTP → excepción enviando a {}: {}", mask_email(to_email), e)
        return False


def _send_via_sendgrid(s: dict, to_email: str, subject: str, text_body: str, html_body: str) -> bool:
    if not (s["sendgrid_key"] and s["from_email"]):
        logger.error("Config de mailer incompleta (SendGrid): EMAIL_FROM o SENDGRID_API_KEY ausentes.")
        return False
    message = Mail(
        from_email=From(s["from_email"], s["sender_name"]),
        to_emails=to_email,
        subject=subject,
        plain_text_content=text_body,
        html_content=html_body or None,
    )
    try:
        response = SendGridAPIClient(s["sendgrid_key"]).send(message)
        logger.info(
            "SendGrid response: {} | X-Message-Id: {}",
            response.status_code, response.headers.get("X-Message-Id"),
        )
        if 200 <= response.status_code < 300:
            return True
        logger.error(
            "SendGrid error → status={} | body={}",
            response.status_code, getattr(response, "body", None),
        )
        return False
    except Exception as e:
        logger.exception("Excepción enviando con SendGrid a {}: {}", mask_email(to_email), e)
        return False


def send_email(to_email: str, subject: str, text_body: str, html_body: str = "") -> bool:
    """Envía un correo con el proveedor configurado. True si se entregó (o DRY_RUN)."""
    s = _settings()
    if s["dry_run"]:
        logger.info("[DRY_RUN] Simular envío a {} | Asunto: {}", mask_email(to_email), subject)
        return True
    if s["provider"] == "smtp":
        return _send_via_smtp(s, to_email, subject, text_body, html_body)
    return _send_via_sendgrid(s, to_email, subject, text_body, html_body)


# =================================================================================
# 🧾 Plantillas
# =================================================================================
REMINDER_SUBJECT = "Reminder: Please RSVP for our wedding"
CONFIRMATION_SUBJECT = "RSVP received - thank you!"

REMINDER_TEXT = (
    "Hi {name},\n\n"
    "This is a friendly reminder to let us know whether you can join us.\n"
    "You can RSVP here: {url}\n\n"
    "We hope to see you there!\n"
)

CONFIRMATION_TEXT = (
    "Hi {name},\n\n"
    "Thank you for your RSVP.\n"
    "Attending: {attending}\n"
    "Party size: {guest_count}\n"
    "{guests}\n\n"
    "You can review or change your answer any time: {url}\n"
)

_HTML_WRAPPER = (
    "<html><body style=\"font-family: Georgia, serif; color: #333;\">"
    "{content}"
    "</body></html>"
)


def _text_to_html(text: str) -> str:
    paragraphs = [html.escape(p).replace("\n", "<br>") for p in text.strip().split("\n\n")]
    return _HTML_WRAPPER.format(content="".join(f"<p>{p}</p>" for p in paragraphs))


def send_rsvp_reminder_email(to_email: str, guest_name: str, qr_token: str) -> bool:
    body = REMINDER_TEXT.format(name=guest_name, url=build_login_url(qr_token))
    return send_email(to_email, REMINDER_SUBJECT, body, _text_to_html(body))


def send_rsvp_confirmation_email(to_email: str, guest_name: str, qr_token: str, summary: dict) -> bool:
    guests = summary.get("guests") or []
    guest_lines = "\n".join(
        f"- {g['full_name']}" + (f" ({g['meal_preference']})" if g.get("meal_preference") else "")
        for g in guests
    )
    body = CONFIRMATION_TEXT.format(
        name=guest_name,
        attending=summary.get("attending", ""),
        guest_count=summary.get("guest_count", 1),
        guests=guest_lines,
        url=build_login_url(qr_token),
    )
    return send_email(to_email, CONFIRMATION_SUBJECT, body, _text_to_html(body))
