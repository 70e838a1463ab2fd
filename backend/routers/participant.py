import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from auth import decode_token, issue_team_tokens
from certificates import CertificateRenderError, generate_certificate_pdf, sanitize_certificate_filename
from database import get_db
from event_settings import CERTIFICATES_RELEASED_KEY, LEADERBOARD_PAUSED_KEY, get_flag
from leaderboard import build_leaderboard, rank_for_team, total_score
from models import Team, TeamStatus
from routers.shared import build_team_response, find_team_by_code
from schemas import ParticipantDashboard, ParticipantLoginRequest, RefreshTokenRequest, TeamTokenResponse
from security import require_team

logger = logging.getLogger(__name__)
router = APIRouter()


def _token_response(team: Team) -> TeamTokenResponse:
    access_token, refresh_token = issue_team_tokens(team)
    return TeamTokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        team=build_team_response(team),
    )


def _certificates_available(db: Session, team: Team) -> bool:
    return team.checked_in_at is not None and get_flag(db, CERTIFICATES_RELEASED_KEY)


@router.post("/login/participant", response_model=TeamTokenResponse)
def participant_login(payload: ParticipantLoginRequest, db: Session = Depends(get_db)):
    team = find_team_by_code(db, payload.team_code)
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid Unique ID.")
    if team.status != TeamStatus.APPROVED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Team is not approved yet.")
    leader = team.leader
    if not leader or leader.email.strip().lower() != payload.email.strip().lower():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Email does not match the team leader.")
    return _token_response(team)


@router.post("/participant/refresh", response_model=TeamTokenResponse)
def refresh_participant_token(payload: RefreshTokenRequest, db: Session = Depends(get_db)):
    claims = decode_token(payload.refresh_token)
    if claims.get("type") != "refresh" or claims.get("user_type") != "team":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    team = find_team_by_code(db, claims.get("sub"))
    if not team or team.status != TeamStatus.APPROVED:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Team not found")
    return _token_response(team)


@router.get("/participant/me", response_model=ParticipantDashboard)
def get_participant_dashboard(team: Team = Depends(require_team), db: Session = Depends(get_db)):
    paused = get_flag(db, LEADERBOARD_PAUSED_KEY)
    rank = None
    if not paused:
        approved = db.query(Team).filter(Team.status == TeamStatus.APPROVED).all()
        rank = rank_for_team(build_leaderboard(approved), team.id)
    return ParticipantDashboard(
        team=build_team_response(team),
        total_score=total_score(team),
        rank=rank,
        leaderboard_paused=paused,
        checked_in=team.checked_in_at is not None,
        certificates_available=_certificates_available(db, team),
    )


@router.get("/participant/certificates/{member_index}")
def download_member_certificate(member_index: int, team: Team = Depends(require_team), db: Session = Depends(get_db)):
    if not get_flag(db, CERTIFICATES_RELEASED_KEY):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Certificates have not been released yet")
    if team.checked_in_at is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Certificates are available only to checked-in teams")
    if member_index < 0 or member_index >= len(team.participants):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")

    member = team.participants[member_index]
    try:
        result = generate_certificate_pdf(member.name, team.team_name, team.domain)
    except CertificateRenderError as exc:
        logger.error("Certificate download failed for %s (%s): %s", member.name, team.team_code, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to generate certificate for {member.name}",
        ) from exc

    filename = sanitize_certificate_filename(member.name)
    return Response(
        content=result.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
