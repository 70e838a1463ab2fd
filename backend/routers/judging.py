import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from event_settings import LEADERBOARD_PAUSED_KEY, get_flag
from leaderboard import build_leaderboard
from models import ScoreRound, StaffRole, StaffUser, Team, TeamScore, TeamStatus
from routers.shared import build_team_response, get_team_or_404
from schemas import LeaderboardEntry, PublicLeaderboardResponse, ScoreSubmitRequest, TeamEnvelope, TeamResponse
from security import require_judge, require_staff_roles
from utils import log_admin_action

logger = logging.getLogger(__name__)
router = APIRouter()


def _approved_teams(db: Session, domain: Optional[str] = None) -> List[Team]:
    query = db.query(Team).filter(Team.status == TeamStatus.APPROVED)
    if domain:
        query = query.filter(Team.domain == domain)
    return query.order_by(Team.team_name.asc()).all()


@router.get("/judging/teams", response_model=List[TeamResponse])
def list_judging_teams(
    domain: Optional[str] = None,
    judge: StaffUser = Depends(require_judge),
    db: Session = Depends(get_db),
):
    return [build_team_response(team) for team in _approved_teams(db, domain)]


@router.patch("/teams/{team_id}/score", response_model=TeamEnvelope)
def submit_score(
    team_id: int,
    payload: ScoreSubmitRequest,
    request: Request,
    judge: StaffUser = Depends(require_judge),
    db: Session = Depends(get_db),
):
    team = get_team_or_404(db, team_id)
    if team.status != TeamStatus.APPROVED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only approved teams can be scored")

    round_ = ScoreRound(payload.round.value)
    judge_name = payload.judge or judge.display_name
    row = db.query(TeamScore).filter(TeamScore.team_id == team.id, TeamScore.round == round_).first()
    if row:
        row.score = payload.score
        row.remarks = payload.remarks
        row.judge = judge_name
    else:
        db.add(TeamScore(team_id=team.id, round=round_, score=payload.score, remarks=payload.remarks, judge=judge_name))
    db.commit()
    db.refresh(team)

    log_admin_action(
        db,
        judge,
        "Submitted score",
        request.method,
        request.url.path,
        {"team_id": team.id, "round": round_.value, "score": payload.score},
    )
    return TeamEnvelope(message="Score updated successfully", data=build_team_response(team))


@router.get("/leaderboard", response_model=PublicLeaderboardResponse)
def get_public_leaderboard(db: Session = Depends(get_db)):
    paused = get_flag(db, LEADERBOARD_PAUSED_KEY)
    if paused:
        return PublicLeaderboardResponse(paused=True, entries=[])
    entries = [LeaderboardEntry(**row) for row in build_leaderboard(_approved_teams(db))]
    return PublicLeaderboardResponse(paused=False, entries=entries)


@router.get("/admin/leaderboard", response_model=List[LeaderboardEntry])
def get_admin_leaderboard(
    staff: StaffUser = Depends(require_staff_roles(StaffRole.JUDGE)),
    db: Session = Depends(get_db),
):
    return [LeaderboardEntry(**row) for row in build_leaderboard(_approved_teams(db))]
