import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from email_workflows import send_approval_email, send_rejection_email
from event_settings import get_domain_setting, occupied_slots
from github_client import GitHubError, create_team_repository, repository_url
from models import StaffUser, Team, TeamParticipant, TeamStatus
from qr_codes import render_team_qr_png
from routers.shared import build_team_response, get_team_or_404
from schemas import (
    StatisticsResponse,
    TeamEnvelope,
    TeamRegistrationRequest,
    TeamResponse,
    TeamStatusEnum,
    TeamStatusUpdate,
)
from security import require_admin
from team_codes import generate_team_code
from utils import log_admin_action, store_bytes, store_upload

logger = logging.getLogger(__name__)
router = APIRouter()

PAYMENT_PROOF_TYPES = ["image/jpeg", "image/png", "application/pdf"]


def _validation_message(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        message = str(error.get("msg") or "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        location = ".".join(str(part) for part in error.get("loc") or ())
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "Invalid team payload"


def _parse_team_payload(raw: str) -> TeamRegistrationRequest:
    try:
        return TeamRegistrationRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_validation_message(exc))


def _store_team_qr(team: Team) -> bytes:
    qr_png = render_team_qr_png(team.team_code)
    team.qr_code_image_url = store_bytes(
        qr_png, "qr-codes", f"{team.team_code}.png", content_type="image/png", overwrite=True
    )
    return qr_png


@router.post("/register", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def register_team(
    team: str = Form(...),
    paymentProof: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    payload = _parse_team_payload(team)

    setting = get_domain_setting(db, payload.domain)
    if not setting:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid domain selected.")
    if setting.paused_registrations:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registrations are paused for this domain.")
    if occupied_slots(db, payload.domain) >= setting.max_slots:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No slots available for this domain.")

    utr_in_use = db.query(Team.id).filter(
        Team.utr_number == payload.utr_number,
        Team.status != TeamStatus.REJECTED,
    ).first()
    if utr_in_use:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="UTR number already used for another registration.")

    proof_url = await store_upload(paymentProof, "payment-proofs", allowed_types=PAYMENT_PROOF_TYPES)

    new_team = Team(
        team_name=payload.team_name,
        domain=payload.domain,
        git_repo=payload.git_repo,
        leader_index=payload.leader_index,
        leader_mobile=payload.leader_mobile,
        alternate_mobile=payload.alternate_mobile,
        utr_number=payload.utr_number,
        payment_proof_url=proof_url,
        status=TeamStatus.PENDING,
    )
    new_team.participants = [
        TeamParticipant(
            position=index,
            name=participant.name,
            email=str(participant.email),
            college=participant.college,
            mobile=participant.mobile,
        )
        for index, participant in enumerate(payload.participants)
    ]
    db.add(new_team)
    db.commit()
    db.refresh(new_team)
    logger.info("Registered team %s (%s) in %s", new_team.id, new_team.team_name, new_team.domain)
    return build_team_response(new_team)


@router.get("/registrations", response_model=List[TeamResponse])
def list_registrations(
    status_filter: Optional[TeamStatusEnum] = Query(None, alias="status"),
    domain: Optional[str] = None,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Team)
    if status_filter:
        query = query.filter(Team.status == TeamStatus(status_filter.value))
    if domain:
        query = query.filter(Team.domain == domain)
    teams = query.order_by(Team.submitted_at.desc(), Team.id.desc()).all()
    return [build_team_response(team) for team in teams]


@router.get("/registrations/{team_id}", response_model=TeamResponse)
def get_registration(team_id: int, admin: StaffUser = Depends(require_admin), db: Session = Depends(get_db)):
    return build_team_response(get_team_or_404(db, team_id))


@router.patch("/registrations/{team_id}/status", response_model=TeamEnvelope)
def update_registration_status(
    team_id: int,
    payload: TeamStatusUpdate,
    request: Request,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    new_status = str(payload.status or "").strip().lower()
    if new_status not in {TeamStatus.APPROVED.value, TeamStatus.REJECTED.value}:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    team = get_team_or_404(db, team_id)

    if new_status == TeamStatus.APPROVED.value:
        utr_in_use = (
            db.query(Team.id)
            .filter(Team.id != team.id, Team.utr_number == team.utr_number, Team.status != TeamStatus.REJECTED)
            .first()
        )
        if utr_in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="UTR number already used for another registration.",
            )
        team.status = TeamStatus.APPROVED
        team.approved_at = datetime.now(timezone.utc)
        if not team.team_code:
            team.team_code = generate_team_code(db, team.domain, team.team_name)
        if not team.github_repo:
            team.github_repo = repository_url(team.team_code)
        qr_png = _store_team_qr(team)
        db.commit()
        db.refresh(team)

        try:
            team.github_repo = create_team_repository(team.team_code, team.team_name)
            db.commit()
            db.refresh(team)
        except GitHubError as exc:
            logger.warning("Repository creation for %s failed: %s", team.team_code, exc)
        send_approval_email(team, qr_png)
    else:
        team.status = TeamStatus.REJECTED
        db.commit()
        db.refresh(team)
        send_rejection_email(team)

    log_admin_action(
        db,
        admin,
        f"Set team status to {new_status}",
        request.method,
        request.url.path,
        {"team_id": team.id, "team_code": team.team_code},
    )
    return TeamEnvelope(message=f"Team {new_status} successfully!", data=build_team_response(team))


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(admin: StaffUser = Depends(require_admin), db: Session = Depends(get_db)):
    status_counts = dict(
        db.query(Team.status, func.count(Team.id)).group_by(Team.status).all()
    )
    by_domain = dict(db.query(Team.domain, func.count(Team.id)).group_by(Team.domain).all())
    checked_in = db.query(func.count(Team.id)).filter(Team.checked_in_at.isnot(None)).scalar() or 0
    return StatisticsResponse(
        total=sum(status_counts.values()),
        approved=status_counts.get(TeamStatus.APPROVED, 0),
        pending=status_counts.get(TeamStatus.PENDING, 0),
        rejected=status_counts.get(TeamStatus.REJECTED, 0),
        checked_in=checked_in,
        by_domain={domain: int(count) for domain, count in by_domain.items()},
    )


@router.post("/regenerate-qr-codes")
def regenerate_qr_codes(request: Request, admin: StaffUser = Depends(require_admin), db: Session = Depends(get_db)):
    teams = db.query(Team).filter(Team.status == TeamStatus.APPROVED, Team.team_code.isnot(None)).all()
    for team in teams:
        _store_team_qr(team)
    db.commit()
    log_admin_action(db, admin, "Regenerated team QR codes", request.method, request.url.path, {"count": len(teams)})
    return {"message": f"Regenerated QR codes for {len(teams)} teams", "count": len(teams)}
