import logging
import os
import re
from typing import Optional

import requests

logger = logging.getLogger(__name__)

GITHUB_API_URL = os.environ.get("GITHUB_API_URL", "https://api.github.com")
GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN")
GITHUB_OWNER = os.environ.get("GITHUB_OWNER", "hackabhigna2025-hub")
REQUEST_TIMEOUT_SECONDS = 15

GITHUB_USER_RE = re.compile(r"github\.com/([A-Za-z0-9-]+)", re.IGNORECASE)


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def is_configured() -> bool:
    return bool(GITHUB_TOKEN and GITHUB_OWNER)


def repository_url(repo_name: str) -> str:
    return f"https://github.com/{GITHUB_OWNER}/{repo_name}"


def extract_github_username(repo_url: Optional[str]) -> Optional[str]:
    match = GITHUB_USER_RE.search(str(repo_url or ""))
    if not match:
        return None
    return match.group(1)


def _headers() -> dict:
    return {
        "Authorization": f"token {GITHUB_TOKEN}",
        "Accept": "application/vnd.github+json",
        "User-Agent": "hackabhigna-repo-creator",
    }


def _raise_for_response(response: requests.Response, action: str) -> None:
    if response.status_code < 400:
        return
    if response.status_code == 401:
        message = "GitHub token authentication failed"
    elif response.status_code == 422:
        message = "Repository name might already exist or be invalid"
    else:
        message = f"GitHub API error {response.status_code}"
    logger.error("GitHub %s failed (%s): %s", action, response.status_code, response.text[:300])
    raise GitHubError(message, status_code=response.status_code)


def create_team_repository(team_code: str, team_name: str) -> str:
    """Create the private hackathon repository for a team and return its URL."""
    if not is_configured():
        raise GitHubError("GitHub integration is not configured")
    try:
        response = requests.post(
            f"{GITHUB_API_URL}/user/repos",
            json={
                "name": team_code,
                "private": True,
                "description": f"Hackathon repo for team {team_name}",
                "auto_init": True,
                "gitignore_template": "Node",
            },
            headers=_headers(),
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise GitHubError(f"GitHub request failed: {exc}") from exc
    _raise_for_response(response, "repository creation")
    html_url = response.json().get("html_url") or repository_url(team_code)
    logger.info("Private repo created for %s: %s", team_name, html_url)
    return html_url


def invite_collaborator(repo_name: str, username: str, permission: str = "push") -> None:
    if not is_configured():
        raise GitHubError("GitHub integration is not configured")
    try:
        response = requests.put(
            f"{GITHUB_API_URL}/repos/{GITHUB_OWNER}/{repo_name}/collaborators/{username}",
            json={"permission": permission},
            headers=_headers(),
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise GitHubError(f"GitHub request failed: {exc}") from exc
    _raise_for_response(response, "collaborator invitation")
    logger.info("Invited %s to %s/%s with %s access", username, GITHUB_OWNER, repo_name, permission)
