from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Canonical user roles used for authorization."""

    EMPLOYEE = "Employee"
    TEAM_LEADER = "Team Leader"
    TEAM_MANAGER = "Team Manager"
    HR = "HR"
    VP = "VP"
    ADMIN = "Admin"


class ApprovalLevel(str, Enum):
    """Which role group must act next on a regularization request."""

    TEAM_LEADER = "Team Leader"
    TEAM_MANAGER = "Team Manager"
    HR = "HR"
    VP_ADMIN = "VP/Admin"


class RequestStatus(str, Enum):
    """Overall status of a regularization request."""

    PENDING = "Pending"
    UNDER_REVIEW = "Under Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @property
    def is_open(self) -> bool:
        return self in (RequestStatus.PENDING, RequestStatus.UNDER_REVIEW)


class ApprovalStatus(str, Enum):
    """Status of one level's approval sub-record."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class RequestType(str, Enum):
    MISSED_CHECK_IN = "Missed Check-In"
    MISSED_CHECK_OUT = "Missed Check-Out"
    MISSED_BOTH = "Missed Both"
    LATE_ARRIVAL = "Late Arrival"
    EARLY_DEPARTURE = "Early Departure"
    ABSENT_TO_PRESENT = "Absent to Present"
    ABSENT_TO_HALF_DAY = "Absent to Half Day"
    SYSTEM_ERROR = "System Error"
    WORK_FROM_HOME = "Work From Home"
    FIELD_WORK = "Field Work"
    MEDICAL_EMERGENCY = "Medical Emergency"
    TRANSPORT_ISSUE = "Transport Issue"
    OTHER = "Other"


class Priority(str, Enum):
    """Display-only ordering hint; never affects routing."""

    URGENT = "Urgent"
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.NORMAL: 2,
    Priority.LOW: 3,
}


class RequestedStatus(str, Enum):
    PRESENT = "Present"
    HALF_DAY = "Half Day"
    WORK_FROM_HOME = "Work From Home"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"
    HALF_DAY = "HALF_DAY"
    WORK_FROM_HOME = "WORK_FROM_HOME"
    ABSENT = "ABSENT"
    UNKNOWN = "UNKNOWN"


class AuditAction(str, Enum):
    CREATED = "Created"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"
    ATTENDANCE_UPDATED = "Attendance Updated"


class NotificationType(str, Enum):
    REGULARIZATION_SUBMITTED = "regularization_submitted"
    REGULARIZATION_FORWARDED = "regularization_forwarded"
    REGULARIZATION_APPROVED = "regularization_approved"
    REGULARIZATION_REJECTED = "regularization_rejected"
    GENERAL = "general"
