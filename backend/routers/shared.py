from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Team
from schemas import ParticipantResponse, ScoreResponse, TeamResponse
from team_codes import normalize_team_code, parse_qr_payload


def get_team_or_404(db: Session, team_id: int) -> Team:
    team = db.query(Team).filter(Team.id == team_id).first()
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    return team


def find_team_by_code(db: Session, raw_code: Optional[str]) -> Optional[Team]:
    code = parse_qr_payload(raw_code) or normalize_team_code(raw_code)
    if not code:
        return None
    return db.query(Team).filter(func.upper(Team.team_code) == code).first()


def build_team_response(team: Team) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        team_name=team.team_name,
        domain=team.domain,
        git_repo=team.git_repo,
        leader_index=team.leader_index,
        leader_mobile=team.leader_mobile,
        alternate_mobile=team.alternate_mobile,
        utr_number=team.utr_number,
        payment_proof_url=team.payment_proof_url,
        status=team.status.value,
        submitted_at=team.submitted_at,
        approved_at=team.approved_at,
        team_code=team.team_code,
        github_repo=team.github_repo,
        qr_code_image_url=team.qr_code_image_url,
        checked_in_at=team.checked_in_at,
        checked_in_by=team.checked_in_by,
        certificates_sent_at=team.certificates_sent_at,
        certificate_method=team.certificate_method,
        participants=[ParticipantResponse.model_validate(p) for p in team.participants],
        scores={score.round.value: ScoreResponse.model_validate(score) for score in team.scores},
    )
