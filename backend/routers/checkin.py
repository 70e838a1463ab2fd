import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

import github_client
from database import get_db
from email_workflows import send_repository_access_email
from models import StaffUser, TeamStatus
from routers.shared import build_team_response, find_team_by_code
from schemas import GiveAccessRequest, GiveAccessResponse, RepositoryAccessDetails, TeamResponse
from security import require_volunteer
from utils import log_admin_action

logger = logging.getLogger(__name__)
router = APIRouter()


# Accepts a bare code or the full text decoded from a team QR, which may be a URL.
@router.get("/teams/{code:path}", response_model=TeamResponse)
def lookup_team(code: str, volunteer: StaffUser = Depends(require_volunteer), db: Session = Depends(get_db)):
    team = find_team_by_code(db, code)
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    return build_team_response(team)


@router.post("/give-access", response_model=GiveAccessResponse)
def give_repository_access(
    payload: GiveAccessRequest,
    request: Request,
    volunteer: StaffUser = Depends(require_volunteer),
    db: Session = Depends(get_db),
):
    team = find_team_by_code(db, payload.team_code)
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    if team.status != TeamStatus.APPROVED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Team is not approved")

    username = github_client.extract_github_username(team.git_repo)
    if not username:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not determine the team leader's GitHub username from the repository link",
        )
    if not github_client.is_configured():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="GitHub integration is not configured")

    repo_name = team.team_code
    try:
        github_client.invite_collaborator(repo_name, username)
    except github_client.GitHubError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to grant repository access: {exc}") from exc

    repository_url = github_client.repository_url(repo_name)
    team.checked_in_at = datetime.now(timezone.utc)
    team.checked_in_by = volunteer.username
    if not team.github_repo:
        team.github_repo = repository_url
    db.commit()
    db.refresh(team)

    send_repository_access_email(team, repository_url)
    log_admin_action(
        db,
        volunteer,
        "Granted repository access",
        request.method,
        request.url.path,
        {"team_code": team.team_code, "github_username": username},
    )
    logger.info("Team %s checked in by %s", team.team_code, volunteer.username)
    return GiveAccessResponse(
        message=f"Repository {repo_name} is ready and {username} has been invited with push access",
        details=RepositoryAccessDetails(
            team_code=team.team_code,
            team_name=team.team_name,
            github_username=username,
            repository_name=repo_name,
            repository_url=repository_url,
        ),
    )
