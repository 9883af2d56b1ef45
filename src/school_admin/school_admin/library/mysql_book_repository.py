from __future__ import annotations

from typing import Optional

import mysql.connector

from ..common.pagination import Page, PageRequest
from ..core.enums import CopyCondition, CopyStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, like_pattern
from .model import Book, BookCopy
from .mysql_rows import authors_from_db, authors_to_db, row_to_copy
from .repository import BookRepository

_COPY_SELECT = """
    SELECT c.*, b.title, b.authors, b.isbn, b.is_reference_only
    FROM book_copies c
    JOIN books b ON b.id = c.book_id
"""

_BOOK_SELECT = """
    SELECT b.*,
        (SELECT COUNT(*) FROM book_copies c WHERE c.book_id = b.id) AS total_copies,
        (SELECT COUNT(*) FROM book_copies c WHERE c.book_id = b.id AND c.status = 'available') AS available_copies
    FROM books b
"""


def _row_to_book(r: dict) -> Book:
    return Book(
        id=r["id"],
        school_id=r["school_id"],
        title=r["title"],
        authors=authors_from_db(r.get("authors")),
        isbn=r.get("isbn"),
        is_reference_only=bool(r.get("is_reference_only")),
        total_copies=int(r.get("total_copies") or 0),
        available_copies=int(r.get("available_copies") or 0),
    )


class MySQLBookRepository(BookRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_book(self, book_id: str, *, school_id: str) -> Optional[Book]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_BOOK_SELECT} WHERE b.id=%s AND b.school_id=%s", (book_id, school_id))
            row = fetchone(cur)
            return _row_to_book(row) if row else None

    def list_books(self, *, school_id: str, page: PageRequest, search: str = "") -> Page[Book]:
        where = "b.school_id=%s"
        params: list[object] = [school_id]
        if search:
            pattern = like_pattern(search)
            where += " AND (b.title LIKE %s OR b.authors LIKE %s OR b.isbn LIKE %s)"
            params.extend([pattern] * 3)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM books b WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                f"{_BOOK_SELECT} WHERE {where} ORDER BY b.title ASC LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [_row_to_book(r) for r in fetchall(cur)]
            return Page(items=items, total=total, request=page)

    def create_book(self, book: Book, *, created_by: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO books(id, school_id, title, authors, isbn, is_reference_only, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    book.id,
                    book.school_id,
                    book.title,
                    authors_to_db(book.authors),
                    book.isbn,
                    int(book.is_reference_only),
                    created_by,
                ),
            )

    def next_copy_number(self, book_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(MAX(copy_number), 0) + 1 AS next_number FROM book_copies WHERE book_id=%s",
                (book_id,),
            )
            return int((fetchone(cur) or {}).get("next_number") or 1)

    def create_copy(self, copy: BookCopy) -> None:
        try:
            self._insert_copy(copy)
        except mysql.connector.IntegrityError:
            raise ConflictError(f"Barcode {copy.barcode} is already in use")

    def _insert_copy(self, copy: BookCopy) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO book_copies(id, book_id, school_id, barcode, copy_number, status, `condition`)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    copy.id,
                    copy.book_id,
                    copy.school_id,
                    copy.barcode,
                    copy.copy_number,
                    copy.status.value,
                    copy.condition.value,
                ),
            )

    def get_copy(self, copy_id: str) -> Optional[BookCopy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_COPY_SELECT} WHERE c.id=%s", (copy_id,))
            row = fetchone(cur)
            return row_to_copy(row) if row else None

    def get_copy_by_barcode(self, barcode: str, *, school_id: str) -> Optional[BookCopy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_COPY_SELECT} WHERE c.barcode=%s AND c.school_id=%s", (barcode, school_id))
            row = fetchone(cur)
            return row_to_copy(row) if row else None

    def mark_copy_checked_out(self, copy_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE book_copies SET status=%s WHERE id=%s AND status=%s",
                (CopyStatus.CHECKED_OUT.value, copy_id, CopyStatus.AVAILABLE.value),
            )
            return cur.rowcount == 1

    def update_copy_after_return(self, copy_id: str, *, status: CopyStatus, condition: CopyCondition) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE book_copies SET status=%s, `condition`=%s WHERE id=%s",
                (status.value, condition.value, copy_id),
            )
            return cur.rowcount > 0
