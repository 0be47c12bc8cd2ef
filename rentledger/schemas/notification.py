from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from rentledger.models.notification import NotificationType
from rentledger.schemas.common import CamelModel


class NotificationOut(CamelModel):
    id: UUID
    title: str
    message: Optional[str] = None
    type: NotificationType
    read: bool
    data: Dict[str, Any] = {}
    created_at: Optional[datetime] = None


class NotificationList(CamelModel):
    notifications: List[NotificationOut]
    unread_count: int


class NotificationUpdate(CamelModel):
    notification_id: Optional[UUID] = None
    mark_all_read: bool = False
