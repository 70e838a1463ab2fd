import logging
from typing import List, Optional

from certificates import generate_certificate_pdf, sanitize_certificate_filename
from email_templates import (
    build_approval_email,
    build_certificates_email,
    build_rejection_email,
    build_repository_access_email,
)
from emailer import Attachment, EmailDeliveryError, send_email
from models import Team

logger = logging.getLogger(__name__)


class CertificateDispatchError(RuntimeError):
    def __init__(self, message: str, participant_name: Optional[str] = None):
        super().__init__(message)
        self.participant_name = participant_name


def _leader_contact(team: Team):
    leader = team.leader
    if not leader or not leader.email:
        return None, None
    return leader.name, leader.email


def send_approval_email(team: Team, qr_png: Optional[bytes]) -> bool:
    name, email = _leader_contact(team)
    if not email:
        logger.warning("Team %s has no leader email; approval email skipped", team.id)
        return False
    subject, html, text = build_approval_email(name, team.team_name, team.domain, team.team_code or "")
    attachments: List[Attachment] = []
    if qr_png:
        attachments.append(("qr-code.png", qr_png, "image/png"))
    try:
        send_email(email, subject, html, text, attachments=attachments)
    except EmailDeliveryError as exc:
        logger.warning("Approval email for team %s failed: %s", team.id, exc)
        return False
    return True


def send_rejection_email(team: Team) -> bool:
    name, email = _leader_contact(team)
    if not email:
        return False
    subject, html, text = build_rejection_email(name, team.team_name)
    try:
        send_email(email, subject, html, text)
    except EmailDeliveryError as exc:
        logger.warning("Rejection email for team %s failed: %s", team.id, exc)
        return False
    return True


def send_repository_access_email(team: Team, repository_url: str) -> bool:
    name, email = _leader_contact(team)
    if not email:
        return False
    subject, html, text = build_repository_access_email(name, email, team.team_code or "", repository_url)
    try:
        send_email(email, subject, html, text)
    except EmailDeliveryError as exc:
        logger.warning("Repository access email for team %s failed: %s", team.team_code, exc)
        return False
    return True


def dispatch_team_certificates(team: Team) -> str:
    """Render a certificate for every member and mail them to the team leader.

    Returns the rendering method used (``mixed`` when members differ). Raises
    ``CertificateDispatchError`` if a certificate cannot be rendered and
    ``EmailDeliveryError`` if the mail cannot be delivered.
    """
    name, email = _leader_contact(team)
    if not email:
        raise CertificateDispatchError("Team leader email not found")

    attachments: List[Attachment] = []
    methods = []
    for participant in team.participants:
        try:
            result = generate_certificate_pdf(participant.name, team.team_name, team.domain)
        except Exception as exc:
            logger.exception("Certificate rendering failed for %s (team %s)", participant.name, team.id)
            raise CertificateDispatchError(
                f"Failed to generate certificate for {participant.name}",
                participant_name=participant.name,
            ) from exc
        attachments.append((sanitize_certificate_filename(participant.name), result.content, "application/pdf"))
        methods.append(result.method)

    subject, html, text = build_certificates_email(name, team.team_name, len(attachments))
    send_email(email, subject, html, text, attachments=attachments)
    logger.info("Certificates for team %s sent to %s", team.team_name, email)
    unique_methods = set(methods)
    if len(unique_methods) == 1:
        return methods[0]
    return "mixed" if unique_methods else "none"
