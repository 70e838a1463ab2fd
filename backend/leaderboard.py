from typing import Dict, Iterable, List, Optional

from models import ScoreRound, Team, TeamStatus


def round_scores(team: Team) -> Dict[str, float]:
    return {score.round.value: float(score.score or 0) for score in team.scores}


def total_score(team: Team) -> float:
    return sum(round_scores(team).values())


def build_leaderboard(teams: Iterable[Team]) -> List[dict]:
    """Rank approved teams by their summed round scores.

    Ties share a rank and the following rank is skipped (1, 2, 2, 4).
    Equal totals are listed by team name.
    """
    rows = []
    for team in teams:
        if team.status != TeamStatus.APPROVED:
            continue
        rounds = round_scores(team)
        rows.append({
            "team_id": team.id,
            "team_name": team.team_name,
            "team_code": team.team_code,
            "domain": team.domain,
            "total_score": sum(rounds.values()),
            "rounds": {round_.value: rounds.get(round_.value) for round_ in ScoreRound},
        })

    rows.sort(key=lambda row: (-row["total_score"], row["team_name"].lower()))

    previous_total = None
    previous_rank = 0
    for index, row in enumerate(rows, start=1):
        if row["total_score"] != previous_total:
            previous_rank = index
            previous_total = row["total_score"]
        row["rank"] = previous_rank
    return rows


def rank_for_team(leaderboard: List[dict], team_id: int) -> Optional[int]:
    for row in leaderboard:
        if row["team_id"] == team_id:
            return row["rank"]
    return None
