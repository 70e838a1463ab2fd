import os
from html import escape
from typing import Tuple

EVENT_NAME = os.environ.get("EVENT_NAME", "HackAbhigna")
DISCORD_INVITE_URL = os.environ.get("DISCORD_INVITE_URL", "https://discord.gg/C6Zr44ZKxt")
PARTICIPANT_PORTAL_URL = os.environ.get("PARTICIPANT_PORTAL_URL", "https://hackabhigna.in/#/participant")


def _signature_text() -> str:
    return f"Best regards,\n{EVENT_NAME} Team\n"


def _wrap_html(title: str, body: str) -> str:
    return f"""
    <html>
      <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #1b1f24;">
        <div style="max-width: 560px; margin: 0 auto; padding: 24px; border: 1px solid #e6e6e6; border-radius: 12px;">
          <h2 style="margin-top: 0;">{escape(title)}</h2>
          {body}
          <hr style="border: none; border-top: 1px solid #e6e6e6; margin: 24px 0;" />
          <p style="margin-bottom: 0;">Best regards,<br><strong>{escape(EVENT_NAME)} Team</strong></p>
        </div>
      </body>
    </html>
    """


def build_approval_email(leader_name: str, team_name: str, domain: str, team_code: str) -> Tuple[str, str, str]:
    subject = f"{EVENT_NAME} Registration Approved"
    text = (
        f"Dear {leader_name},\n\n"
        f"Congratulations! Your team {team_name} has been approved for {EVENT_NAME} in the domain {domain}.\n"
        f"Your team code is {team_code}.\n\n"
        f"Join the Discord server for future updates: {DISCORD_INVITE_URL}\n\n"
        "Please find your QR code attached. The QR will be scanned on the hackathon day to activate your GitHub repository.\n\n"
        f"{_signature_text()}"
    )
    html = _wrap_html(
        "Registration approved",
        f"""
          <p>Dear {escape(leader_name)},</p>
          <p>Congratulations! Your team <strong>{escape(team_name)}</strong> has been approved for {escape(EVENT_NAME)} in the domain <strong>{escape(domain)}</strong>.</p>
          <p>Your team code is <strong>{escape(team_code)}</strong>.</p>
          <p>Join the Discord server for future updates: <a href="{escape(DISCORD_INVITE_URL)}">{escape(DISCORD_INVITE_URL)}</a></p>
          <p>Please find your QR code attached. The QR will be scanned on the hackathon day to activate your GitHub repository.</p>
        """,
    )
    return subject, html, text


def build_rejection_email(leader_name: str, team_name: str) -> Tuple[str, str, str]:
    subject = f"{EVENT_NAME} Registration Update"
    text = (
        f"Dear {leader_name},\n\n"
        f"We regret to inform you that your team \"{team_name}\" registration for {EVENT_NAME} has been rejected.\n\n"
        "If you have any questions, please contact us.\n\n"
        f"{_signature_text()}"
    )
    html = _wrap_html(
        "Registration update",
        f"""
          <p>Dear {escape(leader_name)},</p>
          <p>We regret to inform you that your team <strong>{escape(team_name)}</strong> registration for {escape(EVENT_NAME)} has been rejected.</p>
          <p>If you have any questions, please contact us.</p>
        """,
    )
    return subject, html, text


def build_repository_access_email(leader_name: str, leader_email: str, team_code: str, repository_url: str) -> Tuple[str, str, str]:
    subject = "GitHub Repository Access Granted"
    text = (
        f"Dear {leader_name},\n\n"
        f"Your GitHub repository has been activated: {repository_url}\n"
        "Please accept the collaboration request.\n"
        f"You can now check your repository activity and feedback from judges at: {PARTICIPANT_PORTAL_URL}\n\n"
        "Participant Login Credentials:\n"
        f"Team Code: {team_code}\n"
        f"Team Leader Email: {leader_email}\n\n"
        f"{_signature_text()}"
    )
    html = _wrap_html(
        "Repository access granted",
        f"""
          <p>Dear {escape(leader_name)},</p>
          <p>Your GitHub repository has been activated: <a href="{escape(repository_url)}">{escape(repository_url)}</a></p>
          <p>Please accept the collaboration request.</p>
          <p>You can now check your repository activity and feedback from judges at <a href="{escape(PARTICIPANT_PORTAL_URL)}">{escape(PARTICIPANT_PORTAL_URL)}</a>.</p>
          <p><strong>Participant login credentials</strong><br>
            Team Code: {escape(team_code)}<br>
            Team Leader Email: {escape(leader_email)}</p>
        """,
    )
    return subject, html, text


def build_certificates_email(leader_name: str, team_name: str, certificate_count: int) -> Tuple[str, str, str]:
    subject = f"{EVENT_NAME} - Certificates for {team_name}"
    leader_name = leader_name or "Participant"
    text = (
        f"Dear {leader_name},\n\n"
        f"Congratulations! Please find the attached certificates of participation for your team {team_name} "
        f"({certificate_count} certificate{'s' if certificate_count != 1 else ''}).\n\n"
        f"{_signature_text()}"
    )
    html = _wrap_html(
        "Certificates of participation",
        f"""
          <p>Dear {escape(leader_name)},</p>
          <p>Congratulations! Please find the attached certificates of participation for your team <strong>{escape(team_name)}</strong>.</p>
          <p>Certificates attached: {certificate_count}</p>
        """,
    )
    return subject, html, text
