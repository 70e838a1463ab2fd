import csv
import io
import os
from datetime import datetime, timezone
from typing import Iterable, List, Sequence

from openpyxl import Workbook

from leaderboard import build_leaderboard, total_score
from models import Team
from pdf_rendering import apply_page_footer, render_html_to_pdf, render_template_html

EVENT_NAME = os.environ.get("EVENT_NAME", "HackAbhigna")

TEAM_EXPORT_HEADERS = [
    "Team Code", "Team Name", "Domain", "Status", "Leader", "Leader Email", "Leader Mobile",
    "Alternate Mobile", "Members", "Colleges", "Git Repo", "UTR Number", "Submitted At",
    "Checked In At", "Total Score",
]
LEADERBOARD_EXPORT_HEADERS = ["Rank", "Team Code", "Team Name", "Domain", "Round 1", "Round 2", "Final", "Total Score"]


def _format_datetime(value) -> str:
    return value.isoformat() if value else ""


def group_teams_by_domain(teams: Iterable[Team], domain_order: Sequence[str] = ()) -> List[dict]:
    grouped = {}
    for team in teams:
        grouped.setdefault(team.domain, []).append(team)

    ordered_domains = [domain for domain in domain_order if domain in grouped]
    ordered_domains += sorted(domain for domain in grouped if domain not in ordered_domains)

    groups = []
    for domain in ordered_domains:
        rows = []
        for team in sorted(grouped[domain], key=lambda item: (item.team_code or "", item.team_name.lower())):
            leader = team.leader
            rows.append({
                "team_code": team.team_code or "",
                "team_name": team.team_name,
                "leader_email": leader.email if leader else "",
                "leader_mobile": team.leader_mobile,
                "alternate_mobile": team.alternate_mobile,
                "members": [
                    {
                        "name": participant.name,
                        "college": participant.college,
                        "is_leader": index == team.leader_index,
                    }
                    for index, participant in enumerate(team.participants)
                ],
            })
        groups.append({"domain": domain, "teams": rows})
    return groups


def build_teams_pdf(teams: Iterable[Team], domain_order: Sequence[str] = ()) -> bytes:
    """Approved-teams report: one page per domain, ``Page N`` footers."""
    html_content = render_template_html(
        "teams_report.html",
        event_name=EVENT_NAME,
        generated_at=datetime.now(timezone.utc).strftime("%d %b %Y %H:%M UTC"),
        groups=group_teams_by_domain(teams, domain_order),
    )
    return apply_page_footer(render_html_to_pdf(html_content), note=EVENT_NAME)


def team_export_rows(teams: Iterable[Team]) -> List[list]:
    rows = []
    for team in teams:
        leader = team.leader
        rows.append([
            team.team_code or "",
            team.team_name,
            team.domain,
            team.status.value,
            leader.name if leader else "",
            leader.email if leader else "",
            team.leader_mobile,
            team.alternate_mobile or "",
            "; ".join(participant.name for participant in team.participants),
            "; ".join(sorted({participant.college for participant in team.participants})),
            team.git_repo,
            team.utr_number,
            _format_datetime(team.submitted_at),
            _format_datetime(team.checked_in_at),
            total_score(team),
        ])
    return rows


def leaderboard_export_rows(teams: Iterable[Team]) -> List[list]:
    rows = []
    for entry in build_leaderboard(teams):
        rounds = entry["rounds"]
        rows.append([
            entry["rank"],
            entry["team_code"] or "",
            entry["team_name"],
            entry["domain"],
            rounds.get("round1"),
            rounds.get("round2"),
            rounds.get("final"),
            entry["total_score"],
        ])
    return rows


def to_csv_bytes(headers: List[str], rows: List[list]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue().encode("utf-8")


def to_xlsx_bytes(headers: List[str], rows: List[list], title: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.append(headers)
    for row in rows:
        ws.append(row)
    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()
