from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository


def _to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        recipient_id=int(r["recipient_id"]),
        title=r["title"],
        message=r["message"],
        type=NotificationType(r["type"]),
        created_at=r["created_at"],
        request_id=r.get("request_id"),
        is_read=bool(r.get("is_read")),
        read_at=r.get("read_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(
        self,
        *,
        recipient_id: int,
        title: str,
        message: str,
        type: NotificationType,
        request_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(recipient_id, title, message, type, request_id)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(recipient_id), title, message, type.value, request_id),
            )
            return int(cur.lastrowid)

    def list_for(self, recipient_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        sql = """
            SELECT notification_id, recipient_id, title, message, type, request_id, is_read, read_at, created_at
            FROM notifications
            WHERE recipient_id=%s
        """
        params: list[object] = [int(recipient_id)]
        if unread_only:
            sql += " AND is_read=0"
        sql += " ORDER BY created_at DESC, notification_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_notification(r) for r in fetchall(cur)]

    def count_unread(self, recipient_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM notifications WHERE recipient_id=%s AND is_read=0",
                (int(recipient_id),),
            )
            return int((fetchone(cur) or {}).get("n") or 0)

    def mark_read(self, notification_id: int, recipient_id: int, read_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE notifications
                SET is_read=1, read_at=COALESCE(read_at, %s)
                WHERE notification_id=%s AND recipient_id=%s
                """,
                (read_at, int(notification_id), int(recipient_id)),
            )
            if cur.rowcount > 0:
                return True
            cur.execute(
                "SELECT 1 AS found FROM notifications WHERE notification_id=%s AND recipient_id=%s",
                (int(notification_id), int(recipient_id)),
            )
            return fetchone(cur) is not None

    def mark_all_read(self, recipient_id: int, read_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE recipient_id=%s AND is_read=0",
                (read_at, int(recipient_id)),
            )
            return int(cur.rowcount or 0)
