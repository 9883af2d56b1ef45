from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from src.school_admin.school_admin.common.pagination import PageRequest
from src.school_admin.school_admin.core.enums import FineStatus, MemberStatus, MemberType, Role
from src.school_admin.school_admin.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.school_admin.school_admin.library.commands import MemberQuery, MemberUpdate, NewMember
from src.school_admin.school_admin.library.member_service import (
    MemberService,
    generate_card_number,
    generate_member_barcode,
)
from src.school_admin.school_admin.library.model import BorrowingTransaction, Fine
from src.school_admin.school_admin.profiles.model import Profile

SCHOOL_ID = "11111111-aaaa-4000-8000-000000000001"
LIBRARIAN_ID = "librarian-1"


@pytest.fixture
def service(access, profiles, members, transactions, fines) -> MemberService:
    return MemberService(access, profiles, members, transactions, fines)


@pytest.fixture
def teacher_profile(profiles) -> Profile:
    return profiles.add(
        Profile(id="teacher-1", school_id=SCHOOL_ID, name="Tom Teacher", email="tom@school.test", role=Role.TEACHER)
    )


def _new_member(profile_id: str, member_type: MemberType, **extra) -> NewMember:
    return NewMember(school_id=SCHOOL_ID, user_id=LIBRARIAN_ID, profile_id=profile_id, member_type=member_type, **extra)


def test_card_number_and_barcode_use_last_eight_epoch_digits(fixed_now):
    suffix = str(int(fixed_now.timestamp() * 1000))[-8:]
    assert generate_card_number(fixed_now) == f"LIB{suffix}"
    assert generate_member_barcode(SCHOOL_ID, fixed_now) == f"11111111{suffix}"


def test_create_teacher_member_gets_staff_defaults(service, teacher_profile, fixed_now):
    member = service.create_member(_new_member("teacher-1", MemberType.TEACHER), now=fixed_now)

    assert member.profile_id == "teacher-1"
    assert member.status == MemberStatus.ACTIVE
    assert member.max_books_allowed == 5
    assert member.max_days_allowed == 14
    assert member.max_renewals == 2
    assert member.can_renew is True
    assert member.sms_notifications is False
    assert member.name == "Tom Teacher"
    assert member.created_by == LIBRARIAN_ID
    assert member.library_card_number.startswith("LIB")


def test_create_student_member_defaults_to_three_books(service, profiles, fixed_now):
    profiles.add(Profile(id="student-9", school_id=SCHOOL_ID, name="Ava", email="ava@school.test", role=Role.STUDENT))
    member = service.create_member(_new_member("student-9", MemberType.STUDENT), now=fixed_now)
    assert member.max_books_allowed == 3


def test_create_member_honours_explicit_privileges(service, teacher_profile, fixed_now):
    member = service.create_member(
        _new_member("teacher-1", MemberType.TEACHER, max_books_allowed=8, max_days_allowed=30, can_reserve=False),
        now=fixed_now,
    )
    assert member.max_books_allowed == 8
    assert member.max_days_allowed == 30
    assert member.can_reserve is False


def test_create_member_twice_conflicts(service, fixed_now):
    with pytest.raises(ConflictError, match="already a library member"):
        service.create_member(_new_member("student-1", MemberType.STUDENT), now=fixed_now)


def test_create_member_for_profile_in_other_school(service, fixed_now):
    with pytest.raises(NotFoundError, match="not in this school"):
        service.create_member(_new_member("outsider-1", MemberType.STAFF), now=fixed_now)


def test_list_members_filters_and_paginates(service, teacher_profile, fixed_now):
    service.create_member(_new_member("teacher-1", MemberType.TEACHER), now=fixed_now)

    page = service.list_members(
        MemberQuery(school_id=SCHOOL_ID, user_id=LIBRARIAN_ID, page=PageRequest(page=1, limit=1))
    )
    assert page.total == 2
    assert len(page.items) == 1
    assert page.pagination() == {"currentPage": 1, "totalPages": 2, "totalItems": 2, "itemsPerPage": 1}

    teachers = service.list_members(
        MemberQuery(school_id=SCHOOL_ID, user_id=LIBRARIAN_ID, member_type=MemberType.TEACHER)
    )
    assert [m.profile_id for m in teachers.items] == ["teacher-1"]

    found = service.list_members(MemberQuery(school_id=SCHOOL_ID, user_id=LIBRARIAN_ID, search="mia"))
    assert [m.id for m in found.items] == ["member-1"]


def test_update_member_applies_only_given_fields(service, members):
    update = MemberUpdate.from_payload(
        "member-1",
        {"school_id": SCHOOL_ID, "user_id": LIBRARIAN_ID, "status": "suspended", "suspension_reason": "late books"},
    )
    member = service.update_member(update)

    assert member.status == MemberStatus.SUSPENDED
    assert member.suspension_reason == "late books"
    assert member.max_books_allowed == 3


def test_update_unknown_member(service):
    update = MemberUpdate(school_id=SCHOOL_ID, user_id=LIBRARIAN_ID, member_id="ghost", changes={"max_books_allowed": 4})
    with pytest.raises(NotFoundError):
        service.update_member(update)


def test_remove_member_soft_deletes(service, members):
    service.remove_member("member-1", school_id=SCHOOL_ID, user_id=LIBRARIAN_ID)
    assert members.by_id["member-1"].status == MemberStatus.DELETED


def test_remove_member_with_active_loan_refused(service, transactions, fixed_now):
    transactions.add(
        BorrowingTransaction(
            id="txn-1",
            school_id=SCHOOL_ID,
            member_id="member-1",
            book_copy_id="copy-1",
            checkout_date=fixed_now,
            due_date=fixed_now + timedelta(days=14),
        )
    )
    with pytest.raises(ValidationError, match="active book transactions"):
        service.remove_member("member-1", school_id=SCHOOL_ID, user_id=LIBRARIAN_ID)


def test_remove_member_with_unpaid_fine_refused(service, fines):
    fines.add(
        Fine(
            id="fine-1",
            school_id=SCHOOL_ID,
            member_id="member-1",
            transaction_id=None,
            amount=Decimal("0.50"),
            status=FineStatus.UNPAID,
        )
    )
    with pytest.raises(ValidationError, match="unpaid fines"):
        service.remove_member("member-1", school_id=SCHOOL_ID, user_id=LIBRARIAN_ID)
