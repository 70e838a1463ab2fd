import base64
import os
import smtplib
import ssl
import logging
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Iterable, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

# (filename, content, mime type)
Attachment = Tuple[str, bytes, str]


class EmailDeliveryError(RuntimeError):
    pass


@dataclass
class SMTPConfig:
    host: str
    port: int
    user: Optional[str]
    password: Optional[str]
    use_tls: bool
    use_ssl: bool
    sender: str


def _bool_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _load_smtp(prefix: str) -> Optional[SMTPConfig]:
    host = os.environ.get(f"{prefix}_HOST")
    port_raw = os.environ.get(f"{prefix}_PORT")
    sender = os.environ.get(f"{prefix}_FROM") or os.environ.get("MAIL_FROM")
    if not host or not port_raw or not sender:
        return None

    try:
        port = int(port_raw)
    except ValueError:
        raise RuntimeError(f"Invalid {prefix}_PORT: {port_raw}")

    return SMTPConfig(
        host=host,
        port=port,
        user=os.environ.get(f"{prefix}_USER"),
        password=os.environ.get(f"{prefix}_PASS"),
        use_tls=_bool_env(os.environ.get(f"{prefix}_TLS"), default=True),
        use_ssl=_bool_env(os.environ.get(f"{prefix}_SSL"), default=False),
        sender=sender,
    )


def build_message(sender: str, to_email: str, subject: str, html: str, text: str, attachments: Iterable[Attachment] = ()) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(text)
    message.add_alternative(html, subtype="html")
    for filename, content, mime_type in attachments:
        maintype, _, subtype = (mime_type or "application/octet-stream").partition("/")
        message.add_attachment(content, maintype=maintype, subtype=subtype or "octet-stream", filename=filename)
    return message


def _send_via_config(config: SMTPConfig, message: EmailMessage) -> None:
    if config.use_ssl:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(config.host, config.port, context=context, timeout=20) as server:
            if config.user and config.password:
                server.login(config.user, config.password)
            server.send_message(message)
        return

    with smtplib.SMTP(config.host, config.port, timeout=20) as server:
        server.ehlo()
        if config.use_tls:
            context = ssl.create_default_context()
            server.starttls(context=context)
            server.ehlo()
        if config.user and config.password:
            server.login(config.user, config.password)
        server.send_message(message)


def _send_via_sendgrid(api_key: str, sender: str, to_email: str, subject: str, html: str, text: str, attachments: List[Attachment]) -> None:
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": sender},
        "subject": subject,
        "content": [
            {"type": "text/plain", "value": text},
            {"type": "text/html", "value": html},
        ],
    }
    if attachments:
        payload["attachments"] = [
            {
                "content": base64.b64encode(content).decode("ascii"),
                "filename": filename,
                "type": mime_type,
                "disposition": "attachment",
            }
            for filename, content, mime_type in attachments
        ]
    response = requests.post(
        SENDGRID_API_URL,
        json=payload,
        headers={"Authorization": f"Bearer {api_key}"},
        timeout=30,
    )
    if response.status_code >= 400:
        raise RuntimeError(f"SendGrid returned {response.status_code}: {response.text[:200]}")


def send_email(to_email: str, subject: str, html: str, text: str, attachments: Optional[List[Attachment]] = None) -> None:
    """Deliver one message, trying SMTP primary, SMTP secondary, then SendGrid.

    Raises ``EmailDeliveryError`` when no configured transport accepts it.
    """
    attachments = list(attachments or [])
    transports = []
    for prefix in ("SMTP_PRIMARY", "SMTP_SECONDARY"):
        config = _load_smtp(prefix)
        if config:
            transports.append((prefix, config))

    sendgrid_key = os.environ.get("SENDGRID_API_KEY")
    sendgrid_sender = os.environ.get("MAIL_FROM")
    if not transports and not (sendgrid_key and sendgrid_sender):
        raise EmailDeliveryError("No email transport configured")

    errors = []
    for prefix, config in transports:
        try:
            _send_via_config(config, build_message(config.sender, to_email, subject, html, text, attachments))
            logger.info("Email sent to %s via %s", to_email, prefix)
            return
        except Exception as exc:
            logger.warning("%s SMTP failed for %s: %s", prefix, to_email, exc)
            errors.append(f"{prefix}: {exc}")

    if sendgrid_key and sendgrid_sender:
        try:
            _send_via_sendgrid(sendgrid_key, sendgrid_sender, to_email, subject, html, text, attachments)
            logger.info("Email sent to %s via SendGrid", to_email)
            return
        except Exception as exc:
            logger.warning("SendGrid failed for %s: %s", to_email, exc)
            errors.append(f"SENDGRID: {exc}")

    raise EmailDeliveryError("; ".join(errors))
