from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, StrictBool, field_validator, model_validator
from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime
import re
from urllib.parse import urlparse

MIN_TEAM_SIZE = 2
MAX_TEAM_SIZE = 4
USERNAME_RE = re.compile(r"^[a-z0-9_.-]{3,64}$")


class TeamStatusEnum(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ScoreRoundEnum(str, Enum):
    ROUND1 = "round1"
    ROUND2 = "round2"
    FINAL = "final"


class StaffRoleEnum(str, Enum):
    ADMIN = "admin"
    JUDGE = "judge"
    VOLUNTEER = "volunteer"


class MessageStatusEnum(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"


def _require_text(value: Optional[str], field_name: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        raise ValueError(f"{field_name} is required")
    return raw


def _enum_value(value):
    return getattr(value, "value", value)


def _normalize_http_url(value: Optional[str], field_name: str, max_length: int = 500) -> str:
    raw = _require_text(value, field_name)
    if len(raw) > max_length:
        raise ValueError(f"{field_name} must be at most {max_length} characters")
    parsed = urlparse(raw)
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{field_name} must be a valid http/https URL")
    return raw


# Registration Schemas
class ParticipantIn(BaseModel):
    name: str = Field(..., max_length=255)
    email: EmailStr
    college: str = Field(..., max_length=255)
    mobile: Optional[str] = Field(default=None, max_length=20)

    @field_validator("name", "college")
    @classmethod
    def validate_required_text(cls, v, info):
        return _require_text(v, info.field_name)

    @field_validator("mobile")
    @classmethod
    def normalize_mobile(cls, v):
        value = str(v or "").strip()
        return value or None


class TeamRegistrationRequest(BaseModel):
    """Team payload sent as the ``team`` form field of ``POST /register``.

    Accepts both the browser client's camelCase keys and snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    team_name: str = Field(..., alias="teamName", max_length=255)
    participants: List[ParticipantIn]
    leader_index: int = Field(..., alias="leaderIndex", ge=0)
    domain: str = Field(..., max_length=255)
    git_repo: str = Field(..., alias="gitRepo")
    leader_mobile: str = Field(..., alias="leaderMobile", max_length=20)
    alternate_mobile: Optional[str] = Field(default=None, alias="alternateMobile", max_length=20)
    utr_number: str = Field(..., alias="utrNumber", max_length=100)

    @field_validator("team_name", "domain", "leader_mobile")
    @classmethod
    def validate_required_text(cls, v, info):
        return _require_text(v, info.field_name)

    @field_validator("utr_number", mode="before")
    @classmethod
    def validate_utr(cls, v):
        return _require_text(v, "UTR number")

    @field_validator("git_repo")
    @classmethod
    def validate_git_repo(cls, v):
        return _normalize_http_url(v, "gitRepo")

    @field_validator("alternate_mobile")
    @classmethod
    def normalize_alternate_mobile(cls, v):
        value = str(v or "").strip()
        return value or None

    @model_validator(mode="after")
    def validate_team_shape(self):
        count = len(self.participants)
        if count < MIN_TEAM_SIZE or count > MAX_TEAM_SIZE:
            raise ValueError(f"A team must have between {MIN_TEAM_SIZE} and {MAX_TEAM_SIZE} participants")
        if self.leader_index >= count:
            raise ValueError("leaderIndex must point at one of the participants")
        return self


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    name: str
    email: str
    college: str
    mobile: Optional[str] = None


class ScoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    score: float
    remarks: str
    judge: str
    updated_at: Optional[datetime] = None


class TeamResponse(BaseModel):
    id: int
    team_name: str
    domain: str
    git_repo: str
    leader_index: int
    leader_mobile: str
    alternate_mobile: Optional[str] = None
    utr_number: str
    payment_proof_url: str
    status: TeamStatusEnum
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    team_code: Optional[str] = None
    github_repo: Optional[str] = None
    qr_code_image_url: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    certificates_sent_at: Optional[datetime] = None
    certificate_method: Optional[str] = None
    participants: List[ParticipantResponse] = []
    scores: Dict[str, ScoreResponse] = {}


class TeamEnvelope(BaseModel):
    message: str
    data: TeamResponse


class TeamStatusUpdate(BaseModel):
    status: str


class StatisticsResponse(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int
    checked_in: int
    by_domain: Dict[str, int]


# Settings Schemas
class DomainSettingResponse(BaseModel):
    domain: str
    max_slots: int
    paused: bool
    slots_left: int


class DomainSettingUpdate(BaseModel):
    paused: StrictBool
    max_slots: Optional[int] = Field(default=None, ge=0)


class GlobalSettingsResponse(BaseModel):
    paused_leaderboard: bool
    certificates_released: bool


class GlobalSettingsUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    paused_leaderboard: Optional[StrictBool] = Field(default=None, alias="pausedLeaderboard")
    certificates_released: Optional[StrictBool] = Field(default=None, alias="certificatesReleased")


# Judging Schemas
class ScoreSubmitRequest(BaseModel):
    round: ScoreRoundEnum
    score: float = Field(..., ge=0, le=100)
    remarks: str = Field(..., max_length=2000)
    judge: Optional[str] = Field(default=None, max_length=255)

    @field_validator("remarks")
    @classmethod
    def validate_remarks(cls, v):
        return _require_text(v, "remarks")

    @field_validator("judge")
    @classmethod
    def normalize_judge(cls, v):
        value = str(v or "").strip()
        return value or None


class LeaderboardEntry(BaseModel):
    rank: int
    team_id: int
    team_name: str
    team_code: Optional[str] = None
    domain: str
    total_score: float
    rounds: Dict[str, Optional[float]] = {}


class PublicLeaderboardResponse(BaseModel):
    paused: bool
    entries: List[LeaderboardEntry]


# Participant Schemas
class ParticipantLoginRequest(BaseModel):
    team_code: str = Field(..., validation_alias=AliasChoices("team_code", "teamCode", "uniqueId"))
    email: str

    @field_validator("team_code", "email")
    @classmethod
    def validate_required_text(cls, v, info):
        return _require_text(v, info.field_name)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TeamTokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    team: TeamResponse


class ParticipantDashboard(BaseModel):
    team: TeamResponse
    total_score: float
    rank: Optional[int] = None
    leaderboard_paused: bool
    checked_in: bool
    certificates_available: bool


# Check-in Schemas
class GiveAccessRequest(BaseModel):
    team_code: str = Field(..., validation_alias=AliasChoices("team_code", "teamCode"))

    @field_validator("team_code")
    @classmethod
    def validate_team_code(cls, v):
        return _require_text(v, "Team code")


class RepositoryAccessDetails(BaseModel):
    team_code: str
    team_name: str
    github_username: str
    repository_name: str
    repository_url: str


class GiveAccessResponse(BaseModel):
    message: str
    details: RepositoryAccessDetails


# Certificate Schemas
class CertificateDispatchResponse(BaseModel):
    success: bool
    message: str
    team_name: str
    leader_email: str
    participant_count: int
    method: str


class BulkCertificateResponse(BaseModel):
    queued: int


# Contact Schemas
class ContactMessageCreate(BaseModel):
    name: str = Field(..., max_length=255)
    email: EmailStr
    subject: str = Field(..., max_length=255)
    message: str = Field(..., max_length=5000)

    @field_validator("name", "subject", "message")
    @classmethod
    def validate_required_text(cls, v, info):
        return _require_text(v, info.field_name)


class ContactMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    subject: str
    message: str
    status: MessageStatusEnum
    submitted_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def unwrap_status(cls, v):
        return _enum_value(v)


class MessageStatusUpdate(BaseModel):
    status: str


# Staff Schemas
class StaffLogin(BaseModel):
    username: str
    password: str


class StaffResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: str
    role: StaffRoleEnum
    is_active: bool
    created_at: Optional[datetime] = None

    @field_validator("role", mode="before")
    @classmethod
    def unwrap_role(cls, v):
        return _enum_value(v)


class StaffTokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    staff: StaffResponse


class StaffCreate(BaseModel):
    username: str
    display_name: str = Field(..., min_length=2, max_length=255)
    role: StaffRoleEnum
    password: str = Field(..., min_length=8)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        value = str(v or "").strip().lower()
        if not USERNAME_RE.fullmatch(value):
            raise ValueError("username must match [a-z0-9_.-] and be 3-64 chars")
        return value


class AdminLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    staff_id: Optional[int] = None
    staff_username: str
    action: str
    method: Optional[str] = None
    path: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
