from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import ApprovalLevel, NotificationType
from ..core.exceptions import DomainError, NotFoundError
from ..regularization.model import RegularizationRequest
from ..regularization.policy import ApprovalPolicy
from ..users.repository import UserRepository
from .model import Notification
from .repository import NotificationRepository

log = logging.getLogger(__name__)


def _label(request: RegularizationRequest) -> str:
    return request.request_code or f"#{request.request_id}"


class NotificationService:
    """In-app notifications for regularization events.

    Sending is best effort: a failed insert is logged and swallowed so the
    workflow call that triggered it still succeeds.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserRepository,
        policy: ApprovalPolicy,
        clock: Callable = now_local,
    ):
        self._notifications = notifications
        self._users = users
        self._policy = policy
        self._clock = clock

    def _send(
        self,
        recipient_id: int,
        title: str,
        message: str,
        type: NotificationType,
        request_id: Optional[int],
    ) -> bool:
        try:
            self._notifications.add(
                recipient_id=recipient_id,
                title=title,
                message=message,
                type=type,
                request_id=request_id,
            )
        except DomainError:
            log.warning("notification to user %s failed", recipient_id, exc_info=True)
            return False
        return True

    def notify_level(self, level: ApprovalLevel, request: RegularizationRequest, *, forwarded: bool = False) -> int:
        """Tell every active user who may act at ``level``. Returns how many were notified."""

        try:
            recipients = self._users.list_active_by_roles(self._policy.roles_for(level))
        except DomainError:
            log.warning("could not resolve recipients for level %s", level.value, exc_info=True)
            return 0

        if forwarded:
            kind = NotificationType.REGULARIZATION_FORWARDED
            title = "Regularization request forwarded"
        else:
            kind = NotificationType.REGULARIZATION_SUBMITTED
            title = "New regularization request"
        message = (
            f"Request {_label(request)} ({request.request_type.value}) for "
            f"{request.attendance_date.isoformat()} is awaiting {level.value} approval"
        )

        sent = 0
        for user in recipients:
            if user.user_id == request.employee_id:
                continue
            if self._send(user.user_id, title, message, kind, request.request_id):
                sent += 1
        log.info("notified %s user(s) at level %s about request %s", sent, level.value, request.request_id)
        return sent

    def notify_requester(self, request: RegularizationRequest, *, approved: bool, final: bool) -> bool:
        label = _label(request)
        if not approved:
            title = "Regularization request rejected"
            message = f"Your request {label} was rejected: {request.rejection_reason}"
            kind = NotificationType.REGULARIZATION_REJECTED
        elif final:
            title = "Regularization request approved"
            message = f"Your request {label} for {request.attendance_date.isoformat()} has been approved"
            kind = NotificationType.REGULARIZATION_APPROVED
        else:
            title = "Regularization request progressed"
            level = request.current_level.value if request.current_level else ""
            message = f"Your request {label} was approved and forwarded to {level}"
            kind = NotificationType.REGULARIZATION_FORWARDED
        return self._send(request.employee_id, title, message, kind, request.request_id)

    def list_for(self, user_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        return self._notifications.list_for(int(user_id), unread_only=unread_only, limit=int(limit))

    def unread_count(self, user_id: int) -> int:
        return self._notifications.count_unread(int(user_id))

    def mark_read(self, notification_id: int, user_id: int) -> None:
        if not self._notifications.mark_read(int(notification_id), int(user_id), self._clock()):
            raise NotFoundError("Notification not found")

    def mark_all_read(self, user_id: int) -> int:
        return self._notifications.mark_all_read(int(user_id), self._clock())
