from __future__ import annotations

from datetime import date

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .repository import RoleRecordRepository


class MySQLRoleRecordRepository(RoleRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_admin(self, *, profile_id: str, school_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO admins(id, school_id, can_create_sub_admins, can_manage_finances, can_manage_staff)
                VALUES(%s,%s,1,1,1)
                """,
                (profile_id, school_id),
            )

    def create_sub_admin(self, *, profile_id: str, school_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sub_admins(id, school_id, can_view_reports, can_manage_students, can_manage_teachers)
                VALUES(%s,%s,0,0,0)
                """,
                (profile_id, school_id),
            )

    def create_teacher(
        self,
        *,
        profile_id: str,
        school_id: str,
        employee_id: str,
        designation: str,
        joining_date: date,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO teachers(id, school_id, employee_id, designation, joining_date, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (profile_id, school_id, employee_id, designation, joining_date),
            )

    def create_student(self, *, profile_id: str, school_id: str, admission_type: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO students(id, school_id, is_active, admission_type) VALUES(%s,%s,1,%s)",
                (profile_id, school_id, admission_type),
            )
