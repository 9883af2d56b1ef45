from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.school_admin.school_admin.core.enums import TransactionStatus
from src.school_admin.school_admin.core.exceptions import ValidationError
from src.school_admin.school_admin.library.commands import TransactionQuery
from src.school_admin.school_admin.library.model import BorrowingTransaction

SCHOOL_ID = "11111111-aaaa-4000-8000-000000000001"
LIBRARIAN_ID = "librarian-1"


@pytest.fixture
def history(transactions, fixed_now):
    transactions.add(
        BorrowingTransaction(
            id="overdue",
            school_id=SCHOOL_ID,
            member_id="member-1",
            book_copy_id="copy-1",
            checkout_date=fixed_now - timedelta(days=20),
            due_date=fixed_now - timedelta(days=6),
        )
    )
    transactions.add(
        BorrowingTransaction(
            id="current",
            school_id=SCHOOL_ID,
            member_id="member-1",
            book_copy_id="copy-2",
            checkout_date=fixed_now - timedelta(days=1),
            due_date=fixed_now + timedelta(days=13),
        )
    )
    transactions.add(
        BorrowingTransaction(
            id="closed",
            school_id=SCHOOL_ID,
            member_id="member-1",
            book_copy_id="copy-2",
            checkout_date=fixed_now - timedelta(days=40),
            due_date=fixed_now - timedelta(days=26),
            status=TransactionStatus.RETURNED,
            return_date=fixed_now - timedelta(days=27),
        )
    )


def _ids(circulation, now, **args):
    query = TransactionQuery.from_args({"school_id": SCHOOL_ID, "user_id": LIBRARIAN_ID, **args})
    return [t.id for t in circulation.list_transactions(query, now=now).items]


def test_status_filters(circulation, history, fixed_now):
    assert _ids(circulation, fixed_now) == ["current", "overdue", "closed"]
    assert sorted(_ids(circulation, fixed_now, status="active")) == ["current", "overdue"]
    assert _ids(circulation, fixed_now, status="returned") == ["closed"]
    assert _ids(circulation, fixed_now, status="overdue") == ["overdue"]


def test_overdue_depends_on_now(circulation, history, fixed_now):
    later = fixed_now + timedelta(days=30)
    assert sorted(_ids(circulation, later, status="overdue")) == ["current", "overdue"]


def test_search_matches_member_name(circulation, history, fixed_now):
    assert len(_ids(circulation, fixed_now, search="Mia")) == 3
    assert _ids(circulation, fixed_now, search="nobody") == []


def test_invalid_status_rejected():
    with pytest.raises(ValidationError):
        TransactionQuery.from_args({"school_id": SCHOOL_ID, "user_id": LIBRARIAN_ID, "status": "lost"})


def test_missing_caller_rejected():
    with pytest.raises(ValidationError, match="Missing required parameters"):
        TransactionQuery.from_args({"school_id": SCHOOL_ID})
