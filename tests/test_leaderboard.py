from conftest import create_team

from leaderboard import build_leaderboard, rank_for_team
from models import ScoreRound, TeamScore, TeamStatus


def _score(db, team, round_, value):
    db.add(TeamScore(team_id=team.id, round=round_, score=value, remarks="ok", judge="Judge"))
    db.commit()


def test_competition_ranking_with_ties(db_session):
    alpha = create_team(db_session, team_name="Alpha", status=TeamStatus.APPROVED, team_code="AGAL001")
    bravo = create_team(db_session, team_name="Bravo", status=TeamStatus.APPROVED, team_code="AGBR002")
    charlie = create_team(db_session, team_name="Charlie", status=TeamStatus.APPROVED, team_code="AGCH003")
    delta = create_team(db_session, team_name="Delta", status=TeamStatus.APPROVED, team_code="AGDE004")

    _score(db_session, alpha, ScoreRound.ROUND1, 90)
    _score(db_session, bravo, ScoreRound.ROUND1, 40)
    _score(db_session, bravo, ScoreRound.ROUND2, 30)
    _score(db_session, charlie, ScoreRound.FINAL, 70)
    _score(db_session, delta, ScoreRound.ROUND1, 10)
    db_session.expire_all()

    rows = build_leaderboard([delta, charlie, bravo, alpha])
    assert [(row["team_name"], row["rank"], row["total_score"]) for row in rows] == [
        ("Alpha", 1, 90),
        ("Bravo", 2, 70),
        ("Charlie", 2, 70),
        ("Delta", 4, 10),
    ]
    assert rows[1]["rounds"] == {"round1": 40, "round2": 30, "final": None}
    assert rank_for_team(rows, delta.id) == 4


def test_only_approved_teams_are_ranked(db_session):
    approved = create_team(db_session, team_name="Approved", status=TeamStatus.APPROVED, team_code="AGAP001")
    pending = create_team(db_session, team_name="Pending")
    rows = build_leaderboard([approved, pending])
    assert [row["team_id"] for row in rows] == [approved.id]
    assert rows[0]["total_score"] == 0
    assert rank_for_team(rows, pending.id) is None
