"""
In-app notification service
Writes user-facing notifications for booking workflow events.
Emission is best-effort: a failure is logged and never propagates to the caller.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Booking, Notification, utc_now

logger = logging.getLogger(__name__)

STATUS_UPDATE = "STATUS_UPDATE"
REMINDER = "REMINDER"
PROMO = "PROMO"

NOTIFICATION_CATEGORIES = (STATUS_UPDATE, REMINDER, PROMO)


def emit(
    db: Session,
    user_id: int,
    booking_id: Optional[int],
    category: str,
    title: str,
    message: str,
) -> Optional[Notification]:
    """
    Persist one notification in its own commit.

    Args:
        db: Database session (any pending work on it must already be committed)
        user_id: Recipient
        booking_id: Related booking, if any
        category: One of NOTIFICATION_CATEGORIES
        title: Short heading
        message: Body text

    Returns:
        The stored Notification, or None if it could not be written
    """
    if category not in NOTIFICATION_CATEGORIES:
        logger.warning(f"⚠️ Unknown notification category '{category}' for user {user_id}")
        return None

    try:
        now = utc_now()
        notification = Notification(
            user_id=user_id,
            booking_id=booking_id,
            type=category,
            title=title,
            message=message,
            is_read=False,
            created_at=now,
            updated_at=now,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info(f"🔔 {category} notification sent to user {user_id} (booking {booking_id})")
        return notification
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to send {category} notification to user {user_id}: {e}")
        return None


def send_status_update_notification(
    db: Session, booking: Booking, title: str, message_template: str
) -> Optional[Notification]:
    """Status-change notification to the booking's owner"""
    plate = booking.vehicle.plate if booking.vehicle else ""
    message = message_template.format(plate=plate, booking_number=booking.booking_number)
    return emit(db, booking.user_id, booking.id, STATUS_UPDATE, title, message)


def get_user_notifications(db: Session, user_id: int) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def mark_as_read(db: Session, notification_id: int, user_id: int) -> bool:
    """Flip the read flag; only the owner's own rows match. Returns False if nothing matched."""
    updated = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .update({"is_read": True, "updated_at": utc_now()}, synchronize_session=False)
    )
    db.commit()
    return updated > 0
