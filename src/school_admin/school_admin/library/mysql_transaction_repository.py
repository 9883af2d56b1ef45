from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..common.pagination import Page, PageRequest
from ..core.enums import CopyCondition, TransactionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, like_pattern
from .model import BorrowingTransaction
from .mysql_rows import row_to_transaction
from .repository import TransactionRepository

_FROM = """
    FROM borrowing_transactions t
    JOIN library_members m ON m.id = t.member_id
    JOIN profiles p ON p.id = m.profile_id
    JOIN book_copies c ON c.id = t.book_copy_id
    JOIN books b ON b.id = c.book_id
"""

_SELECT = f"""
    SELECT t.*,
        m.library_card_number,
        p.name AS member_name,
        p.email AS member_email,
        c.barcode,
        b.title AS book_title,
        b.authors AS book_authors
    {_FROM}
"""


class MySQLTransactionRepository(TransactionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, txn: BorrowingTransaction) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO borrowing_transactions(
                    id, school_id, member_id, book_copy_id, checkout_date, due_date,
                    status, renewal_count, notes, checked_out_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    txn.id,
                    txn.school_id,
                    txn.member_id,
                    txn.book_copy_id,
                    txn.checkout_date,
                    txn.due_date,
                    txn.status.value,
                    txn.renewal_count,
                    txn.notes,
                    txn.checked_out_by,
                ),
            )

    def get(self, transaction_id: str, *, school_id: str) -> Optional[BorrowingTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE t.id=%s AND t.school_id=%s", (transaction_id, school_id))
            row = fetchone(cur)
            return row_to_transaction(row) if row else None

    def delete_active(self, transaction_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM borrowing_transactions WHERE id=%s AND status=%s",
                (transaction_id, TransactionStatus.ACTIVE.value),
            )
            return cur.rowcount > 0

    def count_active_for_member(self, member_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS active_count FROM borrowing_transactions WHERE member_id=%s AND status=%s",
                (member_id, TransactionStatus.ACTIVE.value),
            )
            return int((fetchone(cur) or {}).get("active_count") or 0)

    def mark_returned(
        self,
        transaction_id: str,
        *,
        return_date: datetime,
        condition: CopyCondition,
        notes: str,
        fine_amount: Decimal,
        returned_by: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE borrowing_transactions
                SET status=%s, return_date=%s, return_condition=%s, return_notes=%s,
                    fine_amount=%s, returned_by=%s
                WHERE id=%s AND status=%s
                """,
                (
                    TransactionStatus.RETURNED.value,
                    return_date,
                    condition.value,
                    notes,
                    fine_amount,
                    returned_by,
                    transaction_id,
                    TransactionStatus.ACTIVE.value,
                ),
            )
            return cur.rowcount == 1

    def renew(
        self,
        transaction_id: str,
        *,
        new_due_date: datetime,
        expected_renewal_count: int,
        renewed_by: str,
        renewed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE borrowing_transactions
                SET due_date=%s, renewal_count = renewal_count + 1,
                    last_renewed_date=%s, renewed_by=%s
                WHERE id=%s AND status=%s AND renewal_count=%s
                """,
                (
                    new_due_date,
                    renewed_at,
                    renewed_by,
                    transaction_id,
                    TransactionStatus.ACTIVE.value,
                    expected_renewal_count,
                ),
            )
            return cur.rowcount == 1

    def list_page(
        self,
        *,
        school_id: str,
        page: PageRequest,
        search: str = "",
        status: str = "all",
        now: datetime,
    ) -> Page[BorrowingTransaction]:
        clauses = ["t.school_id=%s"]
        params: list[object] = [school_id]

        if status == "active":
            clauses.append("t.status=%s")
            params.append(TransactionStatus.ACTIVE.value)
        elif status == "returned":
            clauses.append("t.status=%s")
            params.append(TransactionStatus.RETURNED.value)
        elif status == "overdue":
            clauses.append("t.status=%s AND t.due_date < %s")
            params.extend([TransactionStatus.ACTIVE.value, now])

        if search:
            pattern = like_pattern(search)
            clauses.append(
                "(m.library_card_number LIKE %s OR p.name LIKE %s OR c.barcode LIKE %s OR b.title LIKE %s)"
            )
            params.extend([pattern] * 4)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total {_FROM} WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY t.checkout_date DESC LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [row_to_transaction(r) for r in fetchall(cur)]
            return Page(items=items, total=total, request=page)
