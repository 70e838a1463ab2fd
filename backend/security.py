from fastapi import Depends, HTTPException, status

from auth import get_current_staff, get_current_team
from models import StaffRole, StaffUser, Team


def require_staff_roles(*roles: StaffRole):
    allowed = set(roles)

    def _checker(staff: StaffUser = Depends(get_current_staff)) -> StaffUser:
        if staff.role == StaffRole.ADMIN:
            return staff
        if staff.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role does not allow access")
        return staff

    return _checker


def require_admin(staff: StaffUser = Depends(require_staff_roles(StaffRole.ADMIN))) -> StaffUser:
    return staff


def require_judge(staff: StaffUser = Depends(require_staff_roles(StaffRole.JUDGE))) -> StaffUser:
    return staff


def require_volunteer(staff: StaffUser = Depends(require_staff_roles(StaffRole.VOLUNTEER))) -> StaffUser:
    return staff


def require_team(team: Team = Depends(get_current_team)) -> Team:
    return team
