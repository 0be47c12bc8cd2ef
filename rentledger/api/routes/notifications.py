from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from rentledger.core.security import AuthContext, get_current_user
from rentledger.database import get_db
from rentledger.schemas.notification import NotificationList, NotificationOut, NotificationUpdate
from rentledger.services import notification_service

router = APIRouter()


@router.get("/", response_model=NotificationList)
def list_notifications(
    unread: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Latest 20 notifications and the unread count"""
    notifications, unread_count = notification_service.list_notifications(
        db, current_user.user_id, unread_only=unread
    )
    return NotificationList(
        notifications=[NotificationOut.model_validate(n) for n in notifications],
        unread_count=unread_count,
    )


@router.patch("/")
def mark_notifications(
    body: NotificationUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    if body.mark_all_read:
        updated = notification_service.mark_all_read(db, current_user.user_id)
    elif body.notification_id:
        updated = notification_service.mark_read(db, current_user.user_id, body.notification_id)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="notification_id or mark_all_read required"
        )
    return {"success": True, "updated": updated}
