import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from certificates import renderer_summary
from database import SessionLocal, get_db
from email_workflows import CertificateDispatchError, dispatch_team_certificates
from emailer import EmailDeliveryError
from models import StaffUser, Team, TeamStatus
from routers.shared import get_team_or_404
from schemas import BulkCertificateResponse, CertificateDispatchResponse
from security import require_admin
from utils import log_admin_action

logger = logging.getLogger(__name__)
router = APIRouter()


def _mark_sent(team: Team, method: str) -> None:
    team.certificates_sent_at = datetime.now(timezone.utc)
    team.certificate_method = method


def send_certificates_in_background(team_ids: List[int], staff_username: str) -> None:
    db = SessionLocal()
    sent = 0
    try:
        for team_id in team_ids:
            team = db.query(Team).filter(Team.id == team_id).first()
            if not team or team.certificates_sent_at is not None:
                continue
            try:
                method = dispatch_team_certificates(team)
            except (CertificateDispatchError, EmailDeliveryError) as exc:
                logger.error("Certificate dispatch failed for team %s: %s", team.team_name, exc)
                continue
            _mark_sent(team, method)
            db.commit()
            sent += 1
        logger.info("Bulk certificate run by %s finished: %s/%s teams sent", staff_username, sent, len(team_ids))
    finally:
        db.close()


@router.post("/certificates/teams/{team_id}/send", response_model=CertificateDispatchResponse)
def send_team_certificates(
    team_id: int,
    request: Request,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    team = get_team_or_404(db, team_id)
    if team.status != TeamStatus.APPROVED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Certificates can only be sent to approved teams")
    leader = team.leader
    if not leader or not leader.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Team leader email not found")

    try:
        method = dispatch_team_certificates(team)
    except CertificateDispatchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except EmailDeliveryError as exc:
        logger.error("Certificate email for team %s failed: %s", team.team_name, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send email") from exc

    _mark_sent(team, method)
    db.commit()
    log_admin_action(
        db,
        admin,
        "Sent team certificates",
        request.method,
        request.url.path,
        {"team_id": team.id, "method": method, "count": len(team.participants)},
    )
    return CertificateDispatchResponse(
        success=True,
        message="Certificates generated and sent successfully",
        team_name=team.team_name,
        leader_email=leader.email,
        participant_count=len(team.participants),
        method=method,
    )


@router.post("/certificates/send-all", response_model=BulkCertificateResponse)
def send_all_certificates(
    request: Request,
    background_tasks: BackgroundTasks,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    team_ids = [
        row.id
        for row in db.query(Team.id).filter(
            Team.status == TeamStatus.APPROVED,
            Team.checked_in_at.isnot(None),
            Team.certificates_sent_at.is_(None),
        ).order_by(Team.id.asc()).all()
    ]
    if team_ids:
        background_tasks.add_task(send_certificates_in_background, team_ids, admin.username)
    log_admin_action(db, admin, "Queued bulk certificates", request.method, request.url.path, {"count": len(team_ids)})
    return BulkCertificateResponse(queued=len(team_ids))


@router.get("/certificates/health")
def certificate_health(admin: StaffUser = Depends(require_admin)):
    return {"status": "ok", **renderer_summary()}
