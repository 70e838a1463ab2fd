from urllib.parse import quote

import github_client
from conftest import create_team

from models import Team, TeamStatus


def _configure_github(monkeypatch, invited):
    def _fake_invite(repo_name, username, permission="push"):
        invited.append((repo_name, username, permission))

    monkeypatch.setattr(github_client, "is_configured", lambda: True)
    monkeypatch.setattr(github_client, "invite_collaborator", _fake_invite)


def test_lookup_team_by_code_or_qr_url(client, volunteer_headers, db_session):
    create_team(db_session, team_name="Field Mappers", status=TeamStatus.APPROVED, team_code="AGFI001")

    response = client.get("/api/teams/agfi001", headers=volunteer_headers)
    assert response.status_code == 200
    assert response.json()["team_name"] == "Field Mappers"

    scanned = quote("https://hackabhigna.in/#/qr/AGFI001", safe="")
    response = client.get(f"/api/teams/{scanned}", headers=volunteer_headers)
    assert response.status_code == 200
    assert response.json()["team_code"] == "AGFI001"

    assert client.get("/api/teams/EDXX999", headers=volunteer_headers).status_code == 404
    assert client.get("/api/teams/AGFI001").status_code in (401, 403)


def test_give_access_requires_github_configuration(client, volunteer_headers, db_session):
    create_team(db_session, team_name="Field Mappers", status=TeamStatus.APPROVED, team_code="AGFI001")
    response = client.post("/api/give-access", json={"teamCode": "AGFI001"}, headers=volunteer_headers)
    assert response.status_code == 503


def test_give_access_invites_leader_and_checks_team_in(client, volunteer_headers, admin_headers, db_session, sent_emails, monkeypatch):
    invited = []
    _configure_github(monkeypatch, invited)
    team = create_team(
        db_session,
        team_name="Field Mappers",
        status=TeamStatus.APPROVED,
        team_code="AGFI001",
        git_repo="https://github.com/fieldlead/crop-watch",
    )

    response = client.post("/api/give-access", json={"team_code": "AGFI001"}, headers=volunteer_headers)
    assert response.status_code == 200
    details = response.json()["details"]
    assert details == {
        "team_code": "AGFI001",
        "team_name": "Field Mappers",
        "github_username": "fieldlead",
        "repository_name": "AGFI001",
        "repository_url": "https://github.com/hackabhigna-test/AGFI001",
    }
    assert invited == [("AGFI001", "fieldlead", "push")]

    db_session.expire_all()
    stored = db_session.query(Team).filter(Team.id == team.id).one()
    assert stored.checked_in_at is not None
    assert stored.checked_in_by == "volunteer1"

    assert sent_emails[-1]["subject"] == "GitHub Repository Access Granted"
    assert sent_emails[-1]["to"] == "member1@fieldmappers.dev"

    logs = client.get("/api/admin/logs", headers=admin_headers).json()
    assert logs[0]["action"] == "Granted repository access"


def test_give_access_rejections(client, volunteer_headers, db_session, monkeypatch):
    invited = []
    _configure_github(monkeypatch, invited)
    create_team(db_session, team_name="Pending Crew")
    create_team(db_session, team_name="No Github", status=TeamStatus.APPROVED, team_code="AGNO002", git_repo="https://gitlab.com/someone/repo")

    def _give(code):
        return client.post("/api/give-access", json={"team_code": code}, headers=volunteer_headers)

    assert _give("ZZZZ000").status_code == 404
    assert _give("AGNO002").status_code == 400
    assert client.post("/api/give-access", json={"team_code": "  "}, headers=volunteer_headers).status_code == 422
    assert invited == []


def test_give_access_refuses_unapproved_team(client, volunteer_headers, db_session, monkeypatch):
    _configure_github(monkeypatch, [])
    create_team(db_session, team_name="Pending Crew", status=TeamStatus.REJECTED, team_code="AGPE001")
    response = client.post("/api/give-access", json={"team_code": "AGPE001"}, headers=volunteer_headers)
    assert response.status_code == 403


def test_give_access_reports_github_failure(client, volunteer_headers, db_session, monkeypatch):
    def _failing_invite(repo_name, username, permission="push"):
        raise github_client.GitHubError("GitHub token authentication failed", status_code=401)

    monkeypatch.setattr(github_client, "is_configured", lambda: True)
    monkeypatch.setattr(github_client, "invite_collaborator", _failing_invite)
    team = create_team(db_session, team_name="Field Mappers", status=TeamStatus.APPROVED, team_code="AGFI001")

    response = client.post("/api/give-access", json={"team_code": "AGFI001"}, headers=volunteer_headers)
    assert response.status_code == 502
    assert "GitHub token authentication failed" in response.json()["detail"]

    db_session.expire_all()
    assert db_session.query(Team).filter(Team.id == team.id).one().checked_in_at is None
