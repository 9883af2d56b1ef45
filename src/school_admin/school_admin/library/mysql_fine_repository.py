from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from ..core.enums import FineStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import Fine
from .mysql_rows import row_to_fine
from .repository import FineRepository

_SELECT = """
    SELECT f.*, m.library_card_number, p.name AS member_name
    FROM fines f
    JOIN library_members m ON m.id = f.member_id
    JOIN profiles p ON p.id = m.profile_id
"""


class MySQLFineRepository(FineRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, fine: Fine) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fines(id, school_id, member_id, transaction_id, amount, reason, description, status, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    fine.id,
                    fine.school_id,
                    fine.member_id,
                    fine.transaction_id,
                    fine.amount,
                    fine.reason,
                    fine.description,
                    fine.status.value,
                    fine.created_by,
                ),
            )

    def get(self, fine_id: str, *, school_id: str) -> Optional[Fine]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE f.id=%s AND f.school_id=%s", (fine_id, school_id))
            row = fetchone(cur)
            return row_to_fine(row) if row else None

    def total_unpaid_for_member(self, member_id: str) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(SUM(amount), 0) AS total FROM fines WHERE member_id=%s AND status=%s",
                (member_id, FineStatus.UNPAID.value),
            )
            return to_decimal((fetchone(cur) or {}).get("total"))

    def mark_paid(self, fine_id: str, *, processed_by: str, paid_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE fines SET status=%s, processed_by=%s, paid_at=%s WHERE id=%s AND status=%s",
                (FineStatus.PAID.value, processed_by, paid_at, fine_id, FineStatus.UNPAID.value),
            )
            return cur.rowcount == 1

    def list_for_school(
        self,
        *,
        school_id: str,
        status: Optional[FineStatus] = None,
        member_id: Optional[str] = None,
        limit: int = 200,
    ) -> List[Fine]:
        where = "f.school_id=%s"
        params: list[object] = [school_id]
        if status is not None:
            where += " AND f.status=%s"
            params.append(status.value)
        if member_id:
            where += " AND f.member_id=%s"
            params.append(member_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY f.created_at DESC LIMIT %s",
                tuple(params + [limit]),
            )
            return [row_to_fine(r) for r in fetchall(cur)]
