from __future__ import annotations

from datetime import date
from typing import Protocol


class RoleRecordRepository(Protocol):
    """Role-specific extension rows, keyed by the owning profile id."""

    def create_admin(self, *, profile_id: str, school_id: str) -> None:
        raise NotImplementedError

    def create_sub_admin(self, *, profile_id: str, school_id: str) -> None:
        raise NotImplementedError

    def create_teacher(
        self,
        *,
        profile_id: str,
        school_id: str,
        employee_id: str,
        designation: str,
        joining_date: date,
    ) -> None:
        raise NotImplementedError

    def create_student(self, *, profile_id: str, school_id: str, admission_type: str) -> None:
        raise NotImplementedError
