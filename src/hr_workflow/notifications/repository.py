from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationType
from .model import Notification


class NotificationRepository(Protocol):
    def add(
        self,
        *,
        recipient_id: int,
        title: str,
        message: str,
        type: NotificationType,
        request_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def list_for(self, recipient_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError

    def count_unread(self, recipient_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, notification_id: int, recipient_id: int, read_at: datetime) -> bool:
        raise NotImplementedError

    def mark_all_read(self, recipient_id: int, read_at: datetime) -> int:
        raise NotImplementedError
