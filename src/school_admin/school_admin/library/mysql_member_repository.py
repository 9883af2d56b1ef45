from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

import mysql.connector

from ..common.pagination import Page, PageRequest
from ..core.enums import MemberStatus, MemberType
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, like_pattern
from .model import LibraryMember
from .mysql_rows import row_to_member
from .repository import MemberRepository

_SELECT = """
    SELECT m.*, p.name, p.email, p.phone
    FROM library_members m
    JOIN profiles p ON p.id = m.profile_id
"""

_UPDATABLE = {
    "member_type",
    "status",
    "max_books_allowed",
    "max_days_allowed",
    "membership_end_date",
    "can_reserve",
    "can_renew",
    "max_renewals",
    "email_notifications",
    "sms_notifications",
    "suspension_reason",
    "suspension_until",
    "emergency_contact_name",
    "emergency_contact_phone",
}


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[LibraryMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where}", params)
            row = fetchone(cur)
            return row_to_member(row) if row else None

    def get_by_id(self, member_id: str, *, school_id: str) -> Optional[LibraryMember]:
        return self._get_one("m.id=%s AND m.school_id=%s", (member_id, school_id))

    def get_by_card_number(self, card_number: str, *, school_id: str) -> Optional[LibraryMember]:
        return self._get_one("m.library_card_number=%s AND m.school_id=%s", (card_number, school_id))

    def get_by_profile(self, profile_id: str, *, school_id: str) -> Optional[LibraryMember]:
        return self._get_one("m.profile_id=%s AND m.school_id=%s", (profile_id, school_id))

    def list_page(
        self,
        *,
        school_id: str,
        page: PageRequest,
        search: str = "",
        member_type: Optional[MemberType] = None,
        status: Optional[MemberStatus] = None,
    ) -> Page[LibraryMember]:
        clauses = ["m.school_id=%s"]
        params: list[object] = [school_id]

        if member_type is not None:
            clauses.append("m.member_type=%s")
            params.append(member_type.value)
        if status is not None:
            clauses.append("m.status=%s")
            params.append(status.value)
        if search:
            pattern = like_pattern(search)
            clauses.append(
                "(m.library_card_number LIKE %s OR m.barcode LIKE %s OR p.name LIKE %s OR p.email LIKE %s)"
            )
            params.extend([pattern] * 4)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM library_members m
                JOIN profiles p ON p.id = m.profile_id
                WHERE {where}
                """,
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY m.created_at DESC LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [row_to_member(r) for r in fetchall(cur)]
            return Page(items=items, total=total, request=page)

    def create(self, member: LibraryMember) -> None:
        try:
            self._insert(member)
        except mysql.connector.IntegrityError:
            raise ConflictError("User is already a library member")

    def _insert(self, member: LibraryMember) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO library_members(
                    id, profile_id, school_id, library_card_number, barcode, member_type, status,
                    membership_start_date, membership_end_date,
                    max_books_allowed, max_days_allowed, can_reserve, can_renew, max_renewals,
                    email_notifications, sms_notifications,
                    emergency_contact_name, emergency_contact_phone, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,CURRENT_DATE,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    member.id,
                    member.profile_id,
                    member.school_id,
                    member.library_card_number,
                    member.barcode,
                    member.member_type.value,
                    member.status.value,
                    member.membership_end_date,
                    member.max_books_allowed,
                    member.max_days_allowed,
                    int(member.can_reserve),
                    int(member.can_renew),
                    member.max_renewals,
                    int(member.email_notifications),
                    int(member.sms_notifications),
                    member.emergency_contact_name,
                    member.emergency_contact_phone,
                    member.created_by,
                ),
            )

    def update(self, member_id: str, *, school_id: str, changes: Dict[str, Any]) -> bool:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unsupported member columns: {sorted(unknown)}")
        if not changes:
            return True

        assignments = ", ".join(f"{col}=%s" for col in changes)
        values = [v.value if isinstance(v, Enum) else v for v in changes.values()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE library_members SET {assignments} WHERE id=%s AND school_id=%s",
                tuple(values + [member_id, school_id]),
            )
            return cur.rowcount > 0

    def increment_books_borrowed(self, member_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE library_members SET total_books_borrowed = total_books_borrowed + 1 WHERE id=%s",
                (member_id,),
            )

    def add_current_fines(self, member_id: str, amount: Decimal) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE library_members SET current_fines = current_fines + %s WHERE id=%s",
                (amount, member_id),
            )

    def settle_fine(self, member_id: str, amount: Decimal) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE library_members
                SET current_fines = GREATEST(current_fines - %s, 0),
                    total_fines_paid = total_fines_paid + %s
                WHERE id=%s
                """,
                (amount, amount, member_id),
            )
