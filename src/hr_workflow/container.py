from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.regularizer import AttendanceRegularizer
from .core.constants import DEFAULT_CHECK_IN, DEFAULT_CHECK_OUT, DEFAULT_UPLOAD_FOLDER
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .regularization.documents import DocumentStorage
from .regularization.mysql_regularization_repository import MySQLRegularizationRepository
from .regularization.policy import ApprovalPolicy
from .regularization.service import RegularizationService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    regularization_service: RegularizationService
    notification_service: NotificationService
    document_storage: DocumentStorage


def build_container(
    *,
    db_config: dict,
    upload_folder: str = DEFAULT_UPLOAD_FOLDER,
    work_check_in: str = DEFAULT_CHECK_IN,
    work_check_out: str = DEFAULT_CHECK_OUT,
    first_levels: Optional[Mapping[str, str]] = None,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    requests_repo = MySQLRegularizationRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)

    policy = ApprovalPolicy(first_levels)
    notification_service = NotificationService(notifications_repo, users_repo, policy)
    regularizer = AttendanceRegularizer(attendance_repo, check_in=work_check_in, check_out=work_check_out)
    regularization_service = RegularizationService(
        requests_repo,
        attendance_repo,
        policy,
        regularizer,
        notification_service,
    )

    return Container(
        auth_service=AuthService(users_repo),
        regularization_service=regularization_service,
        notification_service=notification_service,
        document_storage=DocumentStorage(upload_folder),
    )
