import smtplib
from email.message import EmailMessage

from flask import current_app

SMTP_KEYS = ("SMTP_HOST", "SMTP_PORT", "SMTP_USERNAME", "SMTP_PASSWORD",
             "SMTP_FROM_EMAIL", "SMTP_USE_TLS", "SMTP_TIMEOUT_SECONDS")


def smtp_settings_from(config) -> dict:
    """Snapshot SMTP settings so mail can be sent outside an app context."""
    return {key: config.get(key) for key in SMTP_KEYS}


def send_email(to_email: str, subject: str, body: str, settings: dict = None):
    settings = settings or smtp_settings_from(current_app.config)

    host = settings.get("SMTP_HOST")
    port = settings.get("SMTP_PORT") or 587
    username = settings.get("SMTP_USERNAME")
    password = settings.get("SMTP_PASSWORD")
    from_email = settings.get("SMTP_FROM_EMAIL") or username
    use_tls = settings.get("SMTP_USE_TLS", True)
    timeout = settings.get("SMTP_TIMEOUT_SECONDS") or 10

    if not host or not from_email:
        return False, "Email not configured"
    if not to_email:
        return False, "No recipient"

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=timeout) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        return False, str(exc)
