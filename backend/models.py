from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Enum as SQLEnum, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
import enum


class TeamStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ScoreRound(enum.Enum):
    ROUND1 = "round1"
    ROUND2 = "round2"
    FINAL = "final"


class StaffRole(enum.Enum):
    ADMIN = "admin"
    JUDGE = "judge"
    VOLUNTEER = "volunteer"


class MessageStatus(enum.Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    team_name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False, index=True)
    git_repo = Column(String(500), nullable=False)
    leader_index = Column(Integer, nullable=False, default=0)
    leader_mobile = Column(String(20), nullable=False)
    alternate_mobile = Column(String(20), nullable=True)
    utr_number = Column(String(100), nullable=False)
    payment_proof_url = Column(String(500), nullable=False)
    status = Column(SQLEnum(TeamStatus), default=TeamStatus.PENDING, nullable=False)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    approved_at = Column(DateTime(timezone=True), nullable=True)
    team_code = Column(String(20), unique=True, index=True, nullable=True)
    github_repo = Column(String(500), nullable=True)
    qr_code_image_url = Column(String(500), nullable=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_in_by = Column(String(100), nullable=True)
    certificates_sent_at = Column(DateTime(timezone=True), nullable=True)
    certificate_method = Column(String(20), nullable=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    participants = relationship(
        "TeamParticipant",
        back_populates="team",
        order_by="TeamParticipant.position",
        cascade="all, delete-orphan",
    )
    scores = relationship("TeamScore", back_populates="team", cascade="all, delete-orphan")

    @property
    def leader(self):
        if 0 <= self.leader_index < len(self.participants):
            return self.participants[self.leader_index]
        return None


class TeamParticipant(Base):
    __tablename__ = "team_participants"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    college = Column(String(255), nullable=False)
    mobile = Column(String(20), nullable=True)

    team = relationship("Team", back_populates="participants")


class TeamScore(Base):
    __tablename__ = "team_scores"
    __table_args__ = (UniqueConstraint("team_id", "round", name="uq_team_scores_team_round"),)

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    round = Column(SQLEnum(ScoreRound), nullable=False)
    score = Column(Float, nullable=False, default=0)
    remarks = Column(Text, nullable=False)
    judge = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    team = relationship("Team", back_populates="scores")


class DomainSetting(Base):
    __tablename__ = "domain_settings"

    id = Column(Integer, primary_key=True, index=True)
    domain = Column(String(255), unique=True, nullable=False)
    max_slots = Column(Integer, default=50, nullable=False)
    paused_registrations = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=0, nullable=False)


class SystemConfig(Base):
    __tablename__ = "system_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(String(500), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(SQLEnum(MessageStatus), default=MessageStatus.NEW, nullable=False)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())


class StaffUser(Base):
    __tablename__ = "staff_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(SQLEnum(StaffRole), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AdminLog(Base):
    __tablename__ = "admin_logs"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, nullable=True)
    staff_username = Column(String(100), nullable=False)
    action = Column(String(255), nullable=False)
    method = Column(String(10), nullable=True)
    path = Column(String(255), nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
