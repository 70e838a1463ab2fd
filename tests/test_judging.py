from conftest import EDUCATION, create_team

from models import TeamScore, TeamStatus


def test_judge_roster_lists_only_approved_teams(client, judge_headers, volunteer_headers, db_session):
    create_team(db_session, team_name="Pending")
    create_team(db_session, team_name="Agri Approved", status=TeamStatus.APPROVED, team_code="AGAG002")
    create_team(db_session, team_name="Edu Approved", domain=EDUCATION, status=TeamStatus.APPROVED, team_code="EDED001")

    response = client.get("/api/judging/teams", headers=judge_headers)
    assert response.status_code == 200
    assert [team["team_name"] for team in response.json()] == ["Agri Approved", "Edu Approved"]

    filtered = client.get("/api/judging/teams", params={"domain": EDUCATION}, headers=judge_headers)
    assert [team["team_code"] for team in filtered.json()] == ["EDED001"]

    assert client.get("/api/judging/teams", headers=volunteer_headers).status_code == 403


def test_submit_score_upserts_round(client, judge_headers, db_session):
    team = create_team(db_session, status=TeamStatus.APPROVED, team_code="AGCO001")

    response = client.patch(
        f"/api/teams/{team.id}/score",
        json={"round": "round1", "score": 72.5, "remarks": "Solid prototype"},
        headers=judge_headers,
    )
    assert response.status_code == 200
    scores = response.json()["data"]["scores"]
    assert scores["round1"]["score"] == 72.5
    assert scores["round1"]["judge"] == "Judge One"

    response = client.patch(
        f"/api/teams/{team.id}/score",
        json={"round": "round1", "score": 80, "remarks": "Improved demo", "judge": "Guest Judge"},
        headers=judge_headers,
    )
    assert response.json()["data"]["scores"]["round1"] == {
        "score": 80.0,
        "remarks": "Improved demo",
        "judge": "Guest Judge",
        "updated_at": response.json()["data"]["scores"]["round1"]["updated_at"],
    }
    assert db_session.query(TeamScore).filter(TeamScore.team_id == team.id).count() == 1


def test_score_validation(client, judge_headers, db_session):
    approved = create_team(db_session, team_name="Approved", status=TeamStatus.APPROVED, team_code="AGAP001")
    pending = create_team(db_session, team_name="Pending")

    def _patch(team_id, body):
        return client.patch(f"/api/teams/{team_id}/score", json=body, headers=judge_headers)

    assert _patch(approved.id, {"round": "round1", "score": 101, "remarks": "x"}).status_code == 422
    assert _patch(approved.id, {"round": "round1", "score": -1, "remarks": "x"}).status_code == 422
    assert _patch(approved.id, {"round": "semifinal", "score": 50, "remarks": "x"}).status_code == 422
    assert _patch(approved.id, {"round": "round1", "score": 50, "remarks": "   "}).status_code == 422
    assert _patch(pending.id, {"round": "round1", "score": 50, "remarks": "ok"}).status_code == 400
    assert _patch(9999, {"round": "round1", "score": 50, "remarks": "ok"}).status_code == 404


def test_public_leaderboard_hides_entries_while_paused(client, judge_headers, admin_headers, db_session):
    top = create_team(db_session, team_name="Top", status=TeamStatus.APPROVED, team_code="AGTO001")
    low = create_team(db_session, team_name="Low", status=TeamStatus.APPROVED, team_code="AGLO002")
    client.patch(f"/api/teams/{top.id}/score", json={"round": "final", "score": 95, "remarks": "great"}, headers=judge_headers)
    client.patch(f"/api/teams/{low.id}/score", json={"round": "round1", "score": 20, "remarks": "ok"}, headers=judge_headers)

    board = client.get("/api/leaderboard").json()
    assert board["paused"] is False
    assert [(entry["rank"], entry["team_code"], entry["total_score"]) for entry in board["entries"]] == [
        (1, "AGTO001", 95.0),
        (2, "AGLO002", 20.0),
    ]

    client.patch("/api/global-settings", json={"paused_leaderboard": True}, headers=admin_headers)
    assert client.get("/api/leaderboard").json() == {"paused": True, "entries": []}

    staff_view = client.get("/api/admin/leaderboard", headers=judge_headers)
    assert staff_view.status_code == 200
    assert len(staff_view.json()) == 2
