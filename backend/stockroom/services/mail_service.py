# Overview: Outbound e-mail for password reset and password setup links.

import smtplib
from email.message import EmailMessage

from flask import current_app


class MailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot take a message."""


def mail_enabled() -> bool:
    return bool(current_app.config.get("MAIL_SERVER"))


def send_mail(to: str, subject: str, body: str) -> bool:
    """
    Send a plain-text message.

    Returns False without sending when MAIL_SERVER is not configured (the
    link is logged instead so local setups stay usable).
    """
    config = current_app.config
    if not mail_enabled():
        current_app.logger.info("Mail disabled; message to %s not sent: %s\n%s", to, subject, body)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config["MAIL_DEFAULT_SENDER"]
    msg["To"] = to
    msg.set_content(body)

    try:
        with smtplib.SMTP(config["MAIL_SERVER"], config["MAIL_PORT"], timeout=20) as smtp:
            if config.get("MAIL_USE_TLS"):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config["MAIL_PASSWORD"])
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.exception("Failed to send mail to %s", to)
        raise MailDeliveryError("Could not send e-mail") from exc

    current_app.logger.info("Sent '%s' to %s", subject, to)
    return True


def build_reset_link(token: str) -> str:
    base = current_app.config["FRONTEND_URL"].rstrip("/")
    return f"{base}/reset-password/{token}"


def send_password_reset(email: str, name: str, token: str) -> bool:
    ttl = current_app.config["PASSWORD_RESET_TTL_MINUTES"]
    body = (
        f"Hello {name},\n\n"
        "We received a request to reset the password of your account.\n"
        f"Open this link to choose a new password (valid for {ttl} minutes):\n\n"
        f"{build_reset_link(token)}\n\n"
        "If you did not ask for this, you can ignore this message."
    )
    return send_mail(email, "Password reset", body)


def send_password_setup(email: str, name: str, token: str) -> bool:
    ttl = current_app.config["PASSWORD_RESET_TTL_MINUTES"]
    body = (
        f"Hello {name},\n\n"
        "Use this link to set the password of your account "
        f"(valid for {ttl} minutes):\n\n"
        f"{build_reset_link(token)}\n"
    )
    return send_mail(email, "Set up your password", body)
