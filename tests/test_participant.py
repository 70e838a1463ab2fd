from datetime import datetime, timezone

import pytest
import requests
from conftest import create_team

from models import Team, TeamStatus


def _login(client, code, email):
    return client.post("/api/login/participant", json={"uniqueId": code, "email": email})


@pytest.fixture
def approved_team(db_session):
    return create_team(db_session, team_name="Green Sprouts", status=TeamStatus.APPROVED, team_code="AGGR001")


def test_participant_login_rules(client, db_session, approved_team):
    create_team(db_session, team_name="Waiting", team_code="AGWA002")

    assert _login(client, "ZZZZ999", "x@example.com").status_code == 404
    assert _login(client, "ZZZZ999", "x@example.com").json()["detail"] == "Invalid Unique ID."
    assert _login(client, "AGWA002", "member1@waiting.dev").status_code == 403
    assert _login(client, "AGGR001", "member2@greensprouts.dev").status_code == 401

    response = _login(client, "aggr001", "  Member1@GreenSprouts.dev ")
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["team"]["team_code"] == "AGGR001"
    assert body["access_token"] and body["refresh_token"]


def test_participant_refresh(client, approved_team):
    tokens = _login(client, "AGGR001", "member1@greensprouts.dev").json()
    response = client.post("/api/participant/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["team"]["team_name"] == "Green Sprouts"

    response = client.post("/api/participant/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


def test_participant_dashboard(client, db_session, approved_team, judge_headers, admin_headers):
    other = create_team(db_session, team_name="Rivals", status=TeamStatus.APPROVED, team_code="AGRI002")
    client.patch(f"/api/teams/{other.id}/score", json={"round": "round1", "score": 90, "remarks": "great"}, headers=judge_headers)
    client.patch(f"/api/teams/{approved_team.id}/score", json={"round": "round1", "score": 60, "remarks": "good"}, headers=judge_headers)

    token = _login(client, "AGGR001", "member1@greensprouts.dev").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    dashboard = client.get("/api/participant/me", headers=headers).json()
    assert dashboard["total_score"] == 60
    assert dashboard["rank"] == 2
    assert dashboard["leaderboard_paused"] is False
    assert dashboard["checked_in"] is False
    assert dashboard["certificates_available"] is False
    assert dashboard["team"]["scores"]["round1"]["remarks"] == "good"

    client.patch("/api/global-settings", json={"paused_leaderboard": True}, headers=admin_headers)
    dashboard = client.get("/api/participant/me", headers=headers).json()
    assert dashboard["rank"] is None
    assert dashboard["leaderboard_paused"] is True


def test_staff_token_cannot_open_dashboard(client, admin_headers):
    assert client.get("/api/participant/me", headers=admin_headers).status_code == 401


def test_certificate_download_requires_release_and_check_in(client, db_session, approved_team, admin_headers, fake_certificates):
    token = _login(client, "AGGR001", "member1@greensprouts.dev").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert client.get("/api/participant/certificates/0", headers=headers).status_code == 403

    client.patch("/api/global-settings", json={"certificates_released": True}, headers=admin_headers)
    assert client.get("/api/participant/certificates/0", headers=headers).status_code == 403

    team = db_session.query(Team).filter(Team.id == approved_team.id).one()
    team.checked_in_at = datetime.now(timezone.utc)
    db_session.commit()

    assert client.get("/api/participant/me", headers=headers).json()["certificates_available"] is True
    assert client.get("/api/participant/certificates/7", headers=headers).status_code == 404

    response = client.get("/api/participant/certificates/1", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "Green_Sprouts_Member_2.pdf" in response.headers["content-disposition"]
    assert fake_certificates == ["Green Sprouts Member 2"]


def test_certificate_download_maps_latex_token_failure_to_502(client, db_session, approved_team, admin_headers, monkeypatch):
    import certificates

    def _unreachable(*args, **kwargs):
        raise requests.ConnectionError("token endpoint unreachable")

    monkeypatch.setattr(certificates, "CERTIFICATE_RENDERER", "latex")
    monkeypatch.setattr(certificates, "ASPOSE_CLIENT_ID", "client-id")
    monkeypatch.setattr(certificates, "ASPOSE_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(certificates.requests, "post", _unreachable)
    monkeypatch.setattr(certificates.time, "sleep", lambda seconds: None)

    client.patch("/api/global-settings", json={"certificates_released": True}, headers=admin_headers)
    team = db_session.query(Team).filter(Team.id == approved_team.id).one()
    team.checked_in_at = datetime.now(timezone.utc)
    db_session.commit()

    token = _login(client, "AGGR001", "member1@greensprouts.dev").json()["access_token"]
    response = client.get("/api/participant/certificates/0", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 502
