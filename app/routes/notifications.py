from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..domain.scheduling.schemas import NotificationResponse
from ..models import User
from ..services.notification_service import get_user_notifications, mark_as_read

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
def get_my_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current user's notifications, newest first"""
    notifications = get_user_notifications(db, current_user.id)
    data = [
        NotificationResponse(
            id=n.id,
            bookingId=n.booking_id,
            title=n.title,
            message=n.message,
            type=n.type,
            isRead=n.is_read,
            createdAt=n.created_at.replace(tzinfo=timezone.utc) if n.created_at else None,
        ).model_dump(mode="json")
        for n in notifications
    ]
    return {"status": "success", "message": "Notifications retrieved successfully.", "data": data}


@router.patch("/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark one of the current user's notifications as read"""
    if not mark_as_read(db, notification_id, current_user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"status": "success", "message": "Notification marked as read."}
