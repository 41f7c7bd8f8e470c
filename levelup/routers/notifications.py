from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from levelup.core.permissions import Capability, Operation
from levelup.database import get_db
from levelup.dependencies import require_capability
from levelup.schemas.notification import NotificationListResponse, NotificationResponse
from levelup.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_NOTIFICATIONS)),
):
    items = NotificationService.for_user(db, capability.user_id, unread_only)
    return {"items": items, "unread": sum(1 for n in items if not n.is_read)}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_NOTIFICATIONS)),
):
    return NotificationService.mark_read(db, capability.user_id, notification_id)
