from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from ..core.enums import PaymentMethod, PaymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import Payment, PaymentQuery
from .repository import PaymentRepository


def _row_to_payment(r: dict) -> Payment:
    return Payment(
        id=r["id"],
        school_id=r["school_id"],
        student_id=r["student_id"],
        amount=to_decimal(r["amount"]),
        payment_method=PaymentMethod(r["payment_method"]),
        payment_date=r["payment_date"],
        status=PaymentStatus(r["status"]),
        reference_number=r.get("reference_number"),
        notes=r.get("notes"),
        recorded_by=r.get("recorded_by"),
        verified_by=r.get("verified_by"),
        verified_at=r.get("verified_at"),
        created_at=r.get("created_at"),
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, payment: Payment) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payments(
                    id, school_id, student_id, amount, payment_method, payment_date,
                    reference_number, notes, status, recorded_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    payment.id,
                    payment.school_id,
                    payment.student_id,
                    payment.amount,
                    payment.payment_method.value,
                    payment.payment_date,
                    payment.reference_number,
                    payment.notes,
                    payment.status.value,
                    payment.recorded_by,
                ),
            )

    def get(self, payment_id: str) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM payments WHERE id=%s", (payment_id,))
            row = fetchone(cur)
            return _row_to_payment(row) if row else None

    def list_for_school(self, query: PaymentQuery) -> List[Payment]:
        clauses = ["school_id=%s"]
        params: list[object] = [query.school_id]

        if query.student_id:
            clauses.append("student_id=%s")
            params.append(query.student_id)
        if query.payment_method is not None:
            clauses.append("payment_method=%s")
            params.append(query.payment_method.value)
        if query.status is not None:
            clauses.append("status=%s")
            params.append(query.status.value)
        if query.is_verified is True:
            clauses.append("verified_at IS NOT NULL")
        elif query.is_verified is False:
            clauses.append("verified_at IS NULL")
        if query.date_from:
            clauses.append("payment_date >= %s")
            params.append(query.date_from)
        if query.date_to:
            clauses.append("payment_date <= %s")
            params.append(query.date_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT * FROM payments WHERE {' AND '.join(clauses)} ORDER BY payment_date DESC, created_at DESC",
                tuple(params),
            )
            return [_row_to_payment(r) for r in fetchall(cur)]

    def mark_verified(self, payment_id: str, *, verified_by: str, verified_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payments SET status=%s, verified_by=%s, verified_at=%s WHERE id=%s",
                (PaymentStatus.PAID.value, verified_by, verified_at, payment_id),
            )
            return cur.rowcount > 0
