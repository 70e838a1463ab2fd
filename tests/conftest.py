from pathlib import Path
import os
import sys
import tempfile

import pytest

ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Settings are read at import time, so the environment is fixed before any backend import.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-only-jwt-secret-for-the-hackathon-portal-0123456789"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="hackathon-uploads-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["GITHUB_OWNER"] = "hackabhigna-test"
os.environ["CERTIFICATE_RENDERER"] = "html"
for key in (
    "AWS_REGION",
    "S3_BUCKET_NAME",
    "S3_ACCESS_KEY",
    "S3_SECRET_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "GITHUB_TOKEN",
    "SENDGRID_API_KEY",
    "MAIL_FROM",
    "DEFAULT_ADMIN_PASSWORD",
    "SMTP_PRIMARY_HOST",
    "SMTP_SECONDARY_HOST",
):
    os.environ.pop(key, None)

from fastapi.testclient import TestClient

import email_workflows
import routers.participant
import routers.registrations
from auth import get_password_hash, issue_staff_tokens
from bootstrap import seed_defaults
from certificates import CertificateResult
from database import Base, SessionLocal, engine
from models import StaffRole, StaffUser, Team, TeamParticipant, TeamStatus

AGRICULTURE = "GenAI/AgenticAI in Agriculture"
EDUCATION = "GenAI/AgenticAI in Education"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()
    yield


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    def _fake_send(to_email, subject, html, text, attachments=None):
        sent.append({
            "to": to_email,
            "subject": subject,
            "html": html,
            "text": text,
            "attachments": list(attachments or []),
        })

    monkeypatch.setattr(email_workflows, "send_email", _fake_send)
    return sent


@pytest.fixture
def created_repos(monkeypatch):
    repos = []

    def _fake_create(team_code, team_name):
        repos.append((team_code, team_name))
        return f"https://github.com/hackabhigna-test/{team_code}"

    monkeypatch.setattr(routers.registrations, "create_team_repository", _fake_create)
    return repos


@pytest.fixture
def fake_certificates(monkeypatch):
    rendered = []

    def _fake_generate(participant_name, team_name, domain=""):
        rendered.append(participant_name)
        return CertificateResult(content=b"%PDF-1.4 fake certificate", method="html")

    monkeypatch.setattr(email_workflows, "generate_certificate_pdf", _fake_generate)
    monkeypatch.setattr(routers.participant, "generate_certificate_pdf", _fake_generate)
    return rendered


@pytest.fixture
def client(sent_emails, created_repos):
    from server import app

    with TestClient(app) as test_client:
        yield test_client


def create_staff(db, username, role, display_name=None, password="staff-password"):
    staff = StaffUser(
        username=username,
        display_name=display_name or username.title(),
        role=role,
        hashed_password=get_password_hash(password),
        is_active=True,
    )
    db.add(staff)
    db.commit()
    db.refresh(staff)
    return staff


def auth_headers(staff):
    access_token, _ = issue_staff_tokens(staff)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def admin_headers(db_session):
    return auth_headers(create_staff(db_session, "admin", StaffRole.ADMIN, "Administrator"))


@pytest.fixture
def judge_headers(db_session):
    return auth_headers(create_staff(db_session, "judge1", StaffRole.JUDGE, "Judge One"))


@pytest.fixture
def volunteer_headers(db_session):
    return auth_headers(create_staff(db_session, "volunteer1", StaffRole.VOLUNTEER, "Volunteer One"))


def create_team(
    db,
    team_name="Code Crafters",
    domain=AGRICULTURE,
    status=TeamStatus.PENDING,
    team_code=None,
    git_repo="https://github.com/leaderdev/agri-bot",
    utr_number=None,
    members=2,
    leader_index=0,
):
    team = Team(
        team_name=team_name,
        domain=domain,
        git_repo=git_repo,
        leader_index=leader_index,
        leader_mobile="9876543210",
        utr_number=utr_number or f"UTR-{team_name.replace(' ', '')}",
        payment_proof_url="http://testserver/uploads/payment-proofs/proof.pdf",
        status=status,
        team_code=team_code,
    )
    team.participants = [
        TeamParticipant(
            position=index,
            name=f"{team_name} Member {index + 1}",
            email=f"member{index + 1}@{team_name.replace(' ', '').lower()}.dev",
            college="Test Institute",
        )
        for index in range(members)
    ]
    db.add(team)
    db.commit()
    db.refresh(team)
    return team
