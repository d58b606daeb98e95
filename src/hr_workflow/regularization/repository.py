from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import Page, RegularizationFilter, RegularizationRequest


class RegularizationRepository(Protocol):
    """Record store for regularization requests.

    ``save`` is a whole-document write guarded by ``version``: it succeeds only
    when the stored version still equals ``expected_version``.
    """

    def get(self, request_id: int) -> Optional[RegularizationRequest]:
        raise NotImplementedError

    def add(self, request: RegularizationRequest) -> RegularizationRequest:
        """Insert a new request; returns it with id and request code assigned."""

        raise NotImplementedError

    def save(self, request: RegularizationRequest, *, expected_version: int) -> bool:
        """Write workflow fields and append audit entries not yet stored."""

        raise NotImplementedError

    def query(
        self,
        filters: RegularizationFilter,
        *,
        page: int = 1,
        per_page: int = 10,
        sort_by: str = "submitted_date",
        descending: bool = True,
    ) -> Page:
        raise NotImplementedError

    def find_open_for_date(self, employee_id: int, attendance_date: date) -> Optional[RegularizationRequest]:
        """A Pending, Under Review or Approved request for that employee and day, if any."""

        raise NotImplementedError

    def count_by_status(
        self,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, int]:
        raise NotImplementedError

    def count_by_type(
        self,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, int]:
        raise NotImplementedError
