from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class Notification:
    notification_id: int
    recipient_id: int
    title: str
    message: str
    type: NotificationType
    created_at: datetime
    request_id: Optional[int] = None
    is_read: bool = False
    read_at: Optional[datetime] = None


def notification_to_dict(n: Notification) -> dict:
    return {
        "id": n.notification_id,
        "title": n.title,
        "message": n.message,
        "type": n.type.value,
        "request_id": n.request_id,
        "is_read": n.is_read,
        "read_at": n.read_at.isoformat() if n.read_at else None,
        "created_at": n.created_at.isoformat(),
    }
