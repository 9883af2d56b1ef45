from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.school_admin.school_admin.common.pagination import Page
from src.school_admin.school_admin.core.enums import (
    CopyStatus,
    FineStatus,
    MemberType,
    PaymentStatus,
    Role,
    TransactionStatus,
)
from src.school_admin.school_admin.core.exceptions import ConflictError, ValidationError
from src.school_admin.school_admin.identity.model import Identity
from src.school_admin.school_admin.identity.provider import DUPLICATE_EMAIL_MESSAGE
from src.school_admin.school_admin.library.calculator.daily_rate_calculator import DailyRateFineCalculator
from src.school_admin.school_admin.library.model import Book, BookCopy, LibraryMember
from src.school_admin.school_admin.library.service import CirculationService
from src.school_admin.school_admin.profiles.access import SchoolAccessService
from src.school_admin.school_admin.profiles.model import Profile

SCHOOL_ID = "11111111-aaaa-4000-8000-000000000001"
OTHER_SCHOOL_ID = "22222222-bbbb-4000-8000-000000000002"
LIBRARIAN_ID = "librarian-1"


class InMemoryIdentities:
    def __init__(self):
        self.by_id: dict[str, Identity] = {}
        self.deleted: list[str] = []
        self.fail_delete = False

    def get_by_email(self, email: str) -> Optional[Identity]:
        return next((i for i in self.by_id.values() if i.email == email.lower()), None)

    def create_identity(self, *, email: str, password: str) -> Identity:
        if self.get_by_email(email):
            raise ValidationError(DUPLICATE_EMAIL_MESSAGE)
        identity = Identity(id=str(uuid.uuid4()), email=email.lower(), password_hash=generate_password_hash(password))
        self.by_id[identity.id] = identity
        return identity

    def delete_identity(self, identity_id: str) -> bool:
        if self.fail_delete:
            raise RuntimeError("identity store unavailable")
        self.deleted.append(identity_id)
        return self.by_id.pop(identity_id, None) is not None


class InMemoryProfiles:
    def __init__(self):
        self.by_id: dict[str, Profile] = {}
        self.fail_upsert = False

    def add(self, profile: Profile) -> Profile:
        self.by_id[profile.id] = profile
        return profile

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        return self.by_id.get(profile_id)

    def upsert(self, *, profile_id, school_id, name, email, role, phone=None, address=None) -> None:
        if self.fail_upsert:
            raise RuntimeError("profiles table locked")
        self.by_id[profile_id] = Profile(
            id=profile_id, school_id=school_id, name=name, email=email, role=role, phone=phone, address=address
        )

    def list_by_role(self, *, school_id: str, role: Role):
        items = [p for p in self.by_id.values() if p.school_id == school_id and p.role == role]
        return sorted(items, key=lambda p: p.name)


class InMemoryRoleRecords:
    def __init__(self):
        self.admins: dict[str, dict] = {}
        self.sub_admins: dict[str, dict] = {}
        self.teachers: dict[str, dict] = {}
        self.students: dict[str, dict] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RuntimeError("duplicate key")

    def create_admin(self, *, profile_id, school_id):
        self._check()
        self.admins[profile_id] = {
            "school_id": school_id,
            "can_create_sub_admins": True,
            "can_manage_finances": True,
            "can_manage_staff": True,
        }

    def create_sub_admin(self, *, profile_id, school_id):
        self._check()
        self.sub_admins[profile_id] = {
            "school_id": school_id,
            "can_view_reports": False,
            "can_manage_students": False,
            "can_manage_teachers": False,
        }

    def create_teacher(self, *, profile_id, school_id, employee_id, designation, joining_date):
        self._check()
        self.teachers[profile_id] = {
            "school_id": school_id,
            "employee_id": employee_id,
            "designation": designation,
            "joining_date": joining_date,
            "is_active": True,
        }

    def create_student(self, *, profile_id, school_id, admission_type):
        self._check()
        self.students[profile_id] = {"school_id": school_id, "admission_type": admission_type, "is_active": True}


class InMemoryMembers:
    def __init__(self, profiles: InMemoryProfiles):
        self._profiles = profiles
        self.by_id: dict[str, LibraryMember] = {}

    def _joined(self, m: LibraryMember) -> LibraryMember:
        p = self._profiles.get_by_id(m.profile_id)
        if not p:
            return m
        return dataclasses.replace(m, name=p.name, email=p.email, phone=p.phone)

    def add(self, member: LibraryMember) -> LibraryMember:
        self.by_id[member.id] = member
        return member

    def get_by_id(self, member_id, *, school_id):
        m = self.by_id.get(member_id)
        return self._joined(m) if m and m.school_id == school_id else None

    def get_by_card_number(self, card_number, *, school_id):
        m = next((m for m in self.by_id.values() if m.library_card_number == card_number), None)
        return self._joined(m) if m and m.school_id == school_id else None

    def get_by_profile(self, profile_id, *, school_id):
        m = next((m for m in self.by_id.values() if m.profile_id == profile_id and m.school_id == school_id), None)
        return self._joined(m) if m else None

    def list_page(self, *, school_id, page, search="", member_type=None, status=None):
        items = [self._joined(m) for m in self.by_id.values() if m.school_id == school_id]
        if member_type is not None:
            items = [m for m in items if m.member_type == member_type]
        if status is not None:
            items = [m for m in items if m.status == status]
        if search:
            needle = search.lower()
            items = [
                m
                for m in items
                if needle in " ".join(filter(None, [m.library_card_number, m.barcode, m.name, m.email])).lower()
            ]
        return Page(items=items[page.offset : page.offset + page.limit], total=len(items), request=page)

    def create(self, member):
        if any(m.profile_id == member.profile_id for m in self.by_id.values()):
            raise ConflictError("User is already a library member")
        self.by_id[member.id] = member

    def update(self, member_id, *, school_id, changes):
        m = self.by_id.get(member_id)
        if not m or m.school_id != school_id:
            return False
        self.by_id[member_id] = dataclasses.replace(m, **changes)
        return True

    def increment_books_borrowed(self, member_id):
        m = self.by_id[member_id]
        self.by_id[member_id] = dataclasses.replace(m, total_books_borrowed=m.total_books_borrowed + 1)

    def add_current_fines(self, member_id, amount):
        m = self.by_id[member_id]
        self.by_id[member_id] = dataclasses.replace(m, current_fines=m.current_fines + amount)

    def settle_fine(self, member_id, amount):
        m = self.by_id[member_id]
        self.by_id[member_id] = dataclasses.replace(
            m,
            current_fines=max(m.current_fines - amount, Decimal("0")),
            total_fines_paid=m.total_fines_paid + amount,
        )


class InMemoryBooks:
    def __init__(self):
        self.books: dict[str, Book] = {}
        self.copies: dict[str, BookCopy] = {}
        # simulate another request claiming the copy between read and update
        self.claimed_elsewhere: set[str] = set()
        self.fail_claim = False
        self.fail_copy_update = False

    def _joined(self, c: BookCopy) -> BookCopy:
        b = self.books.get(c.book_id)
        if not b:
            return c
        return dataclasses.replace(
            c, title=b.title, authors=list(b.authors), isbn=b.isbn, is_reference_only=b.is_reference_only
        )

    def add_book(self, book: Book) -> Book:
        self.books[book.id] = book
        return book

    def add_copy(self, copy: BookCopy) -> BookCopy:
        self.copies[copy.id] = copy
        return copy

    def get_book(self, book_id, *, school_id):
        b = self.books.get(book_id)
        if not b or b.school_id != school_id:
            return None
        copies = [c for c in self.copies.values() if c.book_id == book_id]
        return dataclasses.replace(
            b,
            total_copies=len(copies),
            available_copies=sum(1 for c in copies if c.status == CopyStatus.AVAILABLE),
        )

    def list_books(self, *, school_id, page, search=""):
        items = [self.get_book(b.id, school_id=school_id) for b in self.books.values() if b.school_id == school_id]
        if search:
            items = [b for b in items if search.lower() in b.title.lower() or search == (b.isbn or "")]
        items.sort(key=lambda b: b.title)
        return Page(items=items[page.offset : page.offset + page.limit], total=len(items), request=page)

    def create_book(self, book, *, created_by):
        self.books[book.id] = book

    def next_copy_number(self, book_id):
        return max((c.copy_number for c in self.copies.values() if c.book_id == book_id), default=0) + 1

    def create_copy(self, copy):
        if any(c.barcode == copy.barcode for c in self.copies.values()):
            raise ConflictError(f"Barcode {copy.barcode} is already in use")
        self.copies[copy.id] = copy

    def get_copy(self, copy_id):
        c = self.copies.get(copy_id)
        return self._joined(c) if c else None

    def get_copy_by_barcode(self, barcode, *, school_id):
        c = next((c for c in self.copies.values() if c.barcode == barcode and c.school_id == school_id), None)
        return self._joined(c) if c else None

    def mark_copy_checked_out(self, copy_id):
        if self.fail_claim:
            raise RuntimeError("lost connection to MySQL server")
        c = self.copies[copy_id]
        if copy_id in self.claimed_elsewhere or c.status != CopyStatus.AVAILABLE:
            return False
        self.copies[copy_id] = dataclasses.replace(c, status=CopyStatus.CHECKED_OUT)
        return True

    def update_copy_after_return(self, copy_id, *, status, condition):
        if self.fail_copy_update:
            raise RuntimeError("book_copies row locked")
        c = self.copies.get(copy_id)
        if not c:
            return False
        self.copies[copy_id] = dataclasses.replace(c, status=status, condition=condition)
        return True


class InMemoryTransactions:
    def __init__(self, members: InMemoryMembers, books: InMemoryBooks):
        self._members = members
        self._books = books
        self.by_id = {}
        self.deleted: list[str] = []

    def _joined(self, t):
        m = self._members.by_id.get(t.member_id)
        m = self._members._joined(m) if m else None
        c = self._books.get_copy(t.book_copy_id)
        return dataclasses.replace(
            t,
            library_card_number=m.library_card_number if m else None,
            member_name=m.name if m else None,
            member_email=m.email if m else None,
            barcode=c.barcode if c else None,
            book_title=c.title if c else None,
            book_authors=list(c.authors) if c else [],
        )

    def add(self, txn):
        self.by_id[txn.id] = txn
        return txn

    def create(self, txn):
        self.by_id[txn.id] = txn

    def get(self, transaction_id, *, school_id):
        t = self.by_id.get(transaction_id)
        return self._joined(t) if t and t.school_id == school_id else None

    def delete_active(self, transaction_id):
        self.deleted.append(transaction_id)
        t = self.by_id.get(transaction_id)
        if not t or t.status != TransactionStatus.ACTIVE:
            return False
        del self.by_id[transaction_id]
        return True

    def count_active_for_member(self, member_id):
        return sum(1 for t in self.by_id.values() if t.member_id == member_id and t.status == TransactionStatus.ACTIVE)

    def mark_returned(self, transaction_id, *, return_date, condition, notes, fine_amount, returned_by):
        t = self.by_id.get(transaction_id)
        if not t or t.status != TransactionStatus.ACTIVE:
            return False
        self.by_id[transaction_id] = dataclasses.replace(
            t,
            status=TransactionStatus.RETURNED,
            return_date=return_date,
            return_condition=condition,
            return_notes=notes,
            fine_amount=fine_amount,
            returned_by=returned_by,
        )
        return True

    def renew(self, transaction_id, *, new_due_date, expected_renewal_count, renewed_by, renewed_at):
        t = self.by_id.get(transaction_id)
        if not t or t.status != TransactionStatus.ACTIVE or t.renewal_count != expected_renewal_count:
            return False
        self.by_id[transaction_id] = dataclasses.replace(
            t,
            due_date=new_due_date,
            renewal_count=t.renewal_count + 1,
            last_renewed_date=renewed_at,
            renewed_by=renewed_by,
        )
        return True

    def list_page(self, *, school_id, page, search="", status="all", now):
        items = [self._joined(t) for t in self.by_id.values() if t.school_id == school_id]
        if status == "active":
            items = [t for t in items if t.status == TransactionStatus.ACTIVE]
        elif status == "returned":
            items = [t for t in items if t.status == TransactionStatus.RETURNED]
        elif status == "overdue":
            items = [t for t in items if t.status == TransactionStatus.ACTIVE and t.due_date < now]
        if search:
            needle = search.lower()
            items = [
                t
                for t in items
                if needle
                in " ".join(filter(None, [t.library_card_number, t.member_name, t.barcode, t.book_title])).lower()
            ]
        items.sort(key=lambda t: t.checkout_date, reverse=True)
        return Page(items=items[page.offset : page.offset + page.limit], total=len(items), request=page)


class InMemoryFines:
    def __init__(self):
        self.by_id = {}
        self.fail_create = False

    def add(self, fine):
        self.by_id[fine.id] = fine
        return fine

    def create(self, fine):
        if self.fail_create:
            raise RuntimeError("fines table unavailable")
        self.by_id[fine.id] = fine

    def get(self, fine_id, *, school_id):
        f = self.by_id.get(fine_id)
        return f if f and f.school_id == school_id else None

    def total_unpaid_for_member(self, member_id):
        return sum(
            (f.amount for f in self.by_id.values() if f.member_id == member_id and f.status == FineStatus.UNPAID),
            Decimal("0"),
        )

    def mark_paid(self, fine_id, *, processed_by, paid_at):
        f = self.by_id.get(fine_id)
        if not f or f.status != FineStatus.UNPAID:
            return False
        self.by_id[fine_id] = dataclasses.replace(f, status=FineStatus.PAID, processed_by=processed_by, paid_at=paid_at)
        return True

    def list_for_school(self, *, school_id, status=None, member_id=None, limit=200):
        items = [f for f in self.by_id.values() if f.school_id == school_id]
        if status is not None:
            items = [f for f in items if f.status == status]
        if member_id:
            items = [f for f in items if f.member_id == member_id]
        return items[:limit]


class InMemoryPayments:
    def __init__(self):
        self.by_id = {}

    def add(self, payment):
        self.by_id[payment.id] = payment
        return payment

    def create(self, payment):
        self.by_id[payment.id] = payment

    def get(self, payment_id):
        return self.by_id.get(payment_id)

    def list_for_school(self, query):
        items = [p for p in self.by_id.values() if p.school_id == query.school_id]
        if query.student_id:
            items = [p for p in items if p.student_id == query.student_id]
        if query.payment_method is not None:
            items = [p for p in items if p.payment_method == query.payment_method]
        if query.status is not None:
            items = [p for p in items if p.status == query.status]
        if query.is_verified is not None:
            items = [p for p in items if p.is_verified == query.is_verified]
        if query.date_from:
            items = [p for p in items if p.payment_date >= query.date_from]
        if query.date_to:
            items = [p for p in items if p.payment_date <= query.date_to]
        return items

    def mark_verified(self, payment_id, *, verified_by, verified_at):
        p = self.by_id.get(payment_id)
        if not p:
            return False
        self.by_id[payment_id] = dataclasses.replace(
            p, status=PaymentStatus.PAID, verified_by=verified_by, verified_at=verified_at
        )
        return True


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 13, 10, 0, 0)


@pytest.fixture
def profiles() -> InMemoryProfiles:
    repo = InMemoryProfiles()
    repo.add(Profile(id=LIBRARIAN_ID, school_id=SCHOOL_ID, name="Lib Rarian", email="lib@school.test", role=Role.ADMIN))
    repo.add(Profile(id="outsider-1", school_id=OTHER_SCHOOL_ID, name="Out Sider", email="out@x.test", role=Role.ADMIN))
    repo.add(Profile(id="student-1", school_id=SCHOOL_ID, name="Mia Student", email="mia@school.test", role=Role.STUDENT))
    return repo


@pytest.fixture
def access(profiles) -> SchoolAccessService:
    return SchoolAccessService(profiles)


@pytest.fixture
def members(profiles) -> InMemoryMembers:
    repo = InMemoryMembers(profiles)
    repo.add(
        LibraryMember(
            id="member-1",
            profile_id="student-1",
            school_id=SCHOOL_ID,
            library_card_number="LIB00000001",
            barcode="11111111" + "00000001",
            member_type=MemberType.STUDENT,
            max_books_allowed=3,
            max_days_allowed=14,
            max_renewals=2,
        )
    )
    return repo


@pytest.fixture
def books() -> InMemoryBooks:
    repo = InMemoryBooks()
    repo.add_book(Book(id="book-1", school_id=SCHOOL_ID, title="Dune", authors=["Frank Herbert"], isbn="9780441013593"))
    repo.add_book(Book(id="book-ref", school_id=SCHOOL_ID, title="Atlas of the World", authors=["Various"], is_reference_only=True))
    repo.add_copy(BookCopy(id="copy-1", book_id="book-1", school_id=SCHOOL_ID, barcode="BC-1", copy_number=1))
    repo.add_copy(BookCopy(id="copy-2", book_id="book-1", school_id=SCHOOL_ID, barcode="BC-2", copy_number=2))
    repo.add_copy(BookCopy(id="copy-ref", book_id="book-ref", school_id=SCHOOL_ID, barcode="BC-REF", copy_number=1))
    return repo


@pytest.fixture
def transactions(members, books) -> InMemoryTransactions:
    return InMemoryTransactions(members, books)


@pytest.fixture
def fines() -> InMemoryFines:
    return InMemoryFines()


@pytest.fixture
def circulation(access, members, books, transactions, fines) -> CirculationService:
    return CirculationService(
        access,
        members,
        books,
        transactions,
        fines,
        fine_calculator=DailyRateFineCalculator(Decimal("0.50")),
    )


@pytest.fixture
def identities() -> InMemoryIdentities:
    return InMemoryIdentities()


@pytest.fixture
def role_records() -> InMemoryRoleRecords:
    return InMemoryRoleRecords()


@pytest.fixture
def payments() -> InMemoryPayments:
    return InMemoryPayments()
