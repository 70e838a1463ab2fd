from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models import ContactMessage, MessageStatus, StaffUser
from schemas import ContactMessageCreate, ContactMessageResponse, MessageStatusUpdate
from security import require_admin
from utils import log_admin_action

router = APIRouter()


def _get_message_or_404(db: Session, message_id: int) -> ContactMessage:
    message = db.query(ContactMessage).filter(ContactMessage.id == message_id).first()
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


@router.post("/contact", response_model=ContactMessageResponse, status_code=status.HTTP_201_CREATED)
def submit_contact_message(payload: ContactMessageCreate, db: Session = Depends(get_db)):
    message = ContactMessage(
        name=payload.name,
        email=str(payload.email),
        subject=payload.subject,
        message=payload.message,
        status=MessageStatus.NEW,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


@router.get("/messages", response_model=List[ContactMessageResponse])
def list_messages(admin: StaffUser = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(ContactMessage).order_by(ContactMessage.submitted_at.desc(), ContactMessage.id.desc()).all()


@router.patch("/messages/{message_id}/status", response_model=ContactMessageResponse)
def update_message_status(
    message_id: int,
    payload: MessageStatusUpdate,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    value = str(payload.status or "").strip().lower()
    allowed = {item.value for item in MessageStatus}
    if value not in allowed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    message = _get_message_or_404(db, message_id)
    message.status = MessageStatus(value)
    db.commit()
    db.refresh(message)
    return message


@router.delete("/messages/{message_id}")
def delete_message(
    message_id: int,
    request: Request,
    admin: StaffUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    message = _get_message_or_404(db, message_id)
    db.delete(message)
    db.commit()
    log_admin_action(db, admin, "Deleted contact message", request.method, request.url.path, {"message_id": message_id})
    return {"message": "Message deleted successfully"}
