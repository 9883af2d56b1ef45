from __future__ import annotations

import logging
from uuid import uuid4

from ..common.pagination import Page, PageRequest
from ..core.enums import CopyStatus
from ..core.exceptions import NotFoundError
from ..profiles.access import SchoolAccessService
from .commands import NewBook, NewCopy
from .model import Book, BookCopy
from .repository import BookRepository

logger = logging.getLogger(__name__)

COPY_BARCODE_PREFIX = "BK-"


def generate_copy_barcode(book_id: str, copy_number: int) -> str:
    return f"{COPY_BARCODE_PREFIX}{book_id[:8]}-{copy_number}"


class CatalogService:
    """Books and their barcoded copies. Just enough catalogue to circulate."""

    def __init__(self, access: SchoolAccessService, books: BookRepository):
        self._access = access
        self._books = books

    def list_books(self, *, school_id: str, user_id: str, page: PageRequest, search: str = "") -> Page[Book]:
        self._access.require_school_access(user_id=user_id, school_id=school_id)
        return self._books.list_books(school_id=school_id, page=page, search=search)

    def create_book(self, new_book: NewBook) -> Book:
        self._access.require_school_access(user_id=new_book.user_id, school_id=new_book.school_id)
        book = Book(
            id=str(uuid4()),
            school_id=new_book.school_id,
            title=new_book.title,
            authors=list(new_book.authors),
            isbn=new_book.isbn,
            is_reference_only=new_book.is_reference_only,
        )
        self._books.create_book(book, created_by=new_book.user_id)
        logger.info("Book %s created: %s", book.id, book.title)
        return book

    def add_copy(self, new_copy: NewCopy) -> BookCopy:
        self._access.require_school_access(user_id=new_copy.user_id, school_id=new_copy.school_id)
        book = self._books.get_book(new_copy.book_id, school_id=new_copy.school_id)
        if not book:
            raise NotFoundError("Book not found")

        copy_number = self._books.next_copy_number(book.id)
        copy = BookCopy(
            id=str(uuid4()),
            book_id=book.id,
            school_id=book.school_id,
            barcode=new_copy.barcode or generate_copy_barcode(book.id, copy_number),
            copy_number=copy_number,
            status=CopyStatus.AVAILABLE,
            condition=new_copy.condition,
            title=book.title,
            authors=list(book.authors),
            isbn=book.isbn,
            is_reference_only=book.is_reference_only,
        )
        self._books.create_copy(copy)
        logger.info("Copy %s (#%s) added to book %s", copy.barcode, copy_number, book.id)
        return copy
