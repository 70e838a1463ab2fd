from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from auth import decode_token, get_current_staff, get_password_hash, issue_staff_tokens, verify_password
from database import get_db
from models import AdminLog, StaffRole, StaffUser
from schemas import AdminLogResponse, RefreshTokenRequest, StaffCreate, StaffLogin, StaffResponse, StaffTokenResponse
from security import require_admin
from utils import log_admin_action

router = APIRouter()


def _token_response(staff: StaffUser) -> StaffTokenResponse:
    access_token, refresh_token = issue_staff_tokens(staff)
    return StaffTokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        staff=StaffResponse.model_validate(staff),
    )


@router.post("/auth/login", response_model=StaffTokenResponse)
def staff_login(login_data: StaffLogin, db: Session = Depends(get_db)):
    username = str(login_data.username or "").strip().lower()
    staff = db.query(StaffUser).filter(StaffUser.username == username).first()
    if not staff or not verify_password(login_data.password, staff.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not staff.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return _token_response(staff)


@router.post("/auth/refresh", response_model=StaffTokenResponse)
def staff_refresh(request: RefreshTokenRequest, db: Session = Depends(get_db)):
    payload = decode_token(request.refresh_token)
    if payload.get("type") != "refresh" or payload.get("user_type") != "staff":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    staff = db.query(StaffUser).filter(StaffUser.username == payload.get("sub")).first()
    if not staff or not staff.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Staff account not found")
    return _token_response(staff)


@router.get("/auth/me", response_model=StaffResponse)
def get_staff_me(staff: StaffUser = Depends(get_current_staff)):
    return staff


@router.get("/admin/staff", response_model=List[StaffResponse])
def list_staff(admin: StaffUser = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(StaffUser).order_by(StaffUser.role.asc(), StaffUser.username.asc()).all()


@router.post("/admin/staff", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
def create_staff(
    payload: StaffCreate,
    request: Request,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if db.query(StaffUser).filter(StaffUser.username == payload.username).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    staff = StaffUser(
        username=payload.username,
        display_name=payload.display_name.strip(),
        role=StaffRole(payload.role.value),
        hashed_password=get_password_hash(payload.password),
        is_active=True,
    )
    db.add(staff)
    db.commit()
    db.refresh(staff)
    log_admin_action(
        db,
        admin,
        "Created staff account",
        request.method,
        request.url.path,
        {"username": staff.username, "role": staff.role.value},
    )
    return staff


@router.get("/admin/logs", response_model=List[AdminLogResponse])
def list_admin_logs(
    limit: int = Query(100, ge=1, le=500),
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return db.query(AdminLog).order_by(AdminLog.created_at.desc(), AdminLog.id.desc()).limit(limit).all()
