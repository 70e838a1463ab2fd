import io
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from database import get_db
from event_settings import list_domain_settings
from models import StaffUser, Team, TeamStatus
from pdf_rendering import PdfRenderError
from reports import (
    LEADERBOARD_EXPORT_HEADERS,
    TEAM_EXPORT_HEADERS,
    build_teams_pdf,
    leaderboard_export_rows,
    team_export_rows,
    to_csv_bytes,
    to_xlsx_bytes,
)
from security import require_admin
from utils import log_admin_action

logger = logging.getLogger(__name__)
router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _export_response(headers, rows, format: str, basename: str) -> StreamingResponse:
    if format == "xlsx":
        return StreamingResponse(
            io.BytesIO(to_xlsx_bytes(headers, rows, basename.title())),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={basename}.xlsx"},
        )
    return StreamingResponse(
        io.BytesIO(to_csv_bytes(headers, rows)),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={basename}.csv"},
    )


@router.post("/download-all-teams-pdf")
def download_all_teams_pdf(request: Request, admin: StaffUser = Depends(require_admin), db: Session = Depends(get_db)):
    settings = list_domain_settings(db)
    if not settings or any(not setting.paused_registrations for setting in settings):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Pause registrations for all domains before downloading the teams PDF.",
        )

    teams = db.query(Team).filter(Team.status == TeamStatus.APPROVED).all()
    if not teams:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No approved teams found")

    try:
        pdf_bytes = build_teams_pdf(teams, [setting.domain for setting in settings])
    except PdfRenderError as exc:
        logger.error("Teams PDF rendering failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to render teams PDF") from exc

    log_admin_action(db, admin, "Downloaded approved teams PDF", request.method, request.url.path, {"count": len(teams)})
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=approved_teams.pdf"},
    )


@router.get("/admin/export/teams")
def export_teams(
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    teams = db.query(Team).order_by(Team.domain.asc(), Team.id.asc()).all()
    return _export_response(TEAM_EXPORT_HEADERS, team_export_rows(teams), format, "teams")


@router.get("/admin/export/leaderboard")
def export_leaderboard(
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    teams = db.query(Team).filter(Team.status == TeamStatus.APPROVED).all()
    return _export_response(LEADERBOARD_EXPORT_HEADERS, leaderboard_export_rows(teams), format, "leaderboard")
