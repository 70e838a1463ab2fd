from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from event_settings import (
    CERTIFICATES_RELEASED_KEY,
    LEADERBOARD_PAUSED_KEY,
    get_domain_setting,
    get_flag,
    list_domain_settings,
    occupied_slot_counts,
    occupied_slots,
    set_flag,
    slots_left,
)
from models import DomainSetting, StaffUser
from schemas import DomainSettingResponse, DomainSettingUpdate, GlobalSettingsResponse, GlobalSettingsUpdate
from security import require_admin
from utils import log_admin_action

router = APIRouter()


def _domain_response(setting: DomainSetting, occupied: int) -> DomainSettingResponse:
    return DomainSettingResponse(
        domain=setting.domain,
        max_slots=setting.max_slots,
        paused=bool(setting.paused_registrations),
        slots_left=slots_left(setting, occupied),
    )


def _global_response(db: Session) -> GlobalSettingsResponse:
    return GlobalSettingsResponse(
        paused_leaderboard=get_flag(db, LEADERBOARD_PAUSED_KEY),
        certificates_released=get_flag(db, CERTIFICATES_RELEASED_KEY),
    )


@router.get("/domain-settings", response_model=List[DomainSettingResponse])
def get_domain_settings(db: Session = Depends(get_db)):
    counts = occupied_slot_counts(db)
    return [_domain_response(setting, counts.get(setting.domain, 0)) for setting in list_domain_settings(db)]


# Domain names contain "/", hence the path converter.
@router.patch("/domain-settings/{domain:path}", response_model=DomainSettingResponse)
def update_domain_setting(
    domain: str,
    payload: DomainSettingUpdate,
    request: Request,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    setting = get_domain_setting(db, domain)
    if not setting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Domain not found")
    setting.paused_registrations = payload.paused
    if payload.max_slots is not None:
        setting.max_slots = payload.max_slots
    db.commit()
    db.refresh(setting)
    log_admin_action(
        db,
        admin,
        "Updated domain setting",
        request.method,
        request.url.path,
        {"domain": domain, "paused": payload.paused, "max_slots": setting.max_slots},
    )
    return _domain_response(setting, occupied_slots(db, domain))


@router.get("/global-settings", response_model=GlobalSettingsResponse)
def get_global_settings(db: Session = Depends(get_db)):
    return _global_response(db)


@router.patch("/global-settings", response_model=GlobalSettingsResponse)
def update_global_settings(
    payload: GlobalSettingsUpdate,
    request: Request,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if payload.paused_leaderboard is None and payload.certificates_released is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No settings provided")
    if payload.paused_leaderboard is not None:
        set_flag(db, LEADERBOARD_PAUSED_KEY, payload.paused_leaderboard)
    if payload.certificates_released is not None:
        set_flag(db, CERTIFICATES_RELEASED_KEY, payload.certificates_released)
    db.commit()
    log_admin_action(
        db,
        admin,
        "Updated global settings",
        request.method,
        request.url.path,
        payload.model_dump(exclude_none=True),
    )
    return _global_response(db)
