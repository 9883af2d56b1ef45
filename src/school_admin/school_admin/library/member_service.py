from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from ..common.datetime_utils import now_local
from ..common.pagination import Page
from ..core.constants import (
    CARD_NUMBER_PREFIX,
    DEFAULT_MAX_BOOKS,
    DEFAULT_MAX_DAYS_ALLOWED,
    DEFAULT_MAX_RENEWALS,
    DEFAULT_STUDENT_MAX_BOOKS,
)
from ..core.enums import MemberStatus, MemberType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..profiles.access import SchoolAccessService
from ..profiles.repository import ProfileRepository
from .commands import MemberQuery, MemberUpdate, NewMember
from .model import LibraryMember
from .repository import FineRepository, MemberRepository, TransactionRepository

logger = logging.getLogger(__name__)


def _epoch_suffix(now: datetime) -> str:
    return str(int(now.timestamp() * 1000))[-8:]


def generate_card_number(now: datetime) -> str:
    return f"{CARD_NUMBER_PREFIX}{_epoch_suffix(now)}"


def generate_member_barcode(school_id: str, now: datetime) -> str:
    return f"{school_id[:8]}{_epoch_suffix(now)}"


def default_max_books(member_type: MemberType) -> int:
    return DEFAULT_STUDENT_MAX_BOOKS if member_type == MemberType.STUDENT else DEFAULT_MAX_BOOKS


class MemberService:
    def __init__(
        self,
        access: SchoolAccessService,
        profiles: ProfileRepository,
        members: MemberRepository,
        transactions: TransactionRepository,
        fines: FineRepository,
    ):
        self._access = access
        self._profiles = profiles
        self._members = members
        self._transactions = transactions
        self._fines = fines

    def list_members(self, query: MemberQuery) -> Page[LibraryMember]:
        self._access.require_school_access(user_id=query.user_id, school_id=query.school_id)
        return self._members.list_page(
            school_id=query.school_id,
            page=query.page,
            search=query.search,
            member_type=query.member_type,
            status=query.status,
        )

    def get_member(self, member_id: str, *, school_id: str, user_id: str) -> LibraryMember:
        self._access.require_school_access(user_id=user_id, school_id=school_id)
        return self._require_member(member_id, school_id=school_id)

    def create_member(self, new_member: NewMember, *, now: Optional[datetime] = None) -> LibraryMember:
        now = now or now_local()
        self._access.require_school_access(user_id=new_member.user_id, school_id=new_member.school_id)

        profile = self._profiles.get_by_id(new_member.profile_id)
        if not profile or profile.school_id != new_member.school_id:
            raise NotFoundError("Profile not found or not in this school")

        if self._members.get_by_profile(profile.id, school_id=new_member.school_id):
            raise ConflictError("User is already a library member")

        member = LibraryMember(
            id=str(uuid4()),
            profile_id=profile.id,
            school_id=new_member.school_id,
            library_card_number=generate_card_number(now),
            barcode=generate_member_barcode(new_member.school_id, now),
            member_type=new_member.member_type,
            status=MemberStatus.ACTIVE,
            max_books_allowed=new_member.max_books_allowed or default_max_books(new_member.member_type),
            max_days_allowed=new_member.max_days_allowed or DEFAULT_MAX_DAYS_ALLOWED,
            can_reserve=new_member.can_reserve,
            can_renew=new_member.can_renew,
            max_renewals=new_member.max_renewals or DEFAULT_MAX_RENEWALS,
            email_notifications=new_member.email_notifications,
            sms_notifications=new_member.sms_notifications,
            membership_end_date=new_member.membership_end_date,
            emergency_contact_name=new_member.emergency_contact_name,
            emergency_contact_phone=new_member.emergency_contact_phone,
            created_by=new_member.user_id,
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
        )
        self._members.create(member)
        logger.info("Library member %s created for profile %s", member.library_card_number, profile.id)
        return self._members.get_by_id(member.id, school_id=member.school_id) or member

    def update_member(self, update: MemberUpdate) -> LibraryMember:
        self._access.require_school_access(user_id=update.user_id, school_id=update.school_id)
        self._require_member(update.member_id, school_id=update.school_id)

        if update.changes:
            self._members.update(update.member_id, school_id=update.school_id, changes=update.changes)
            logger.info("Library member %s updated: %s", update.member_id, sorted(update.changes))
        return self._require_member(update.member_id, school_id=update.school_id)

    def remove_member(self, member_id: str, *, school_id: str, user_id: str) -> None:
        """Soft delete: the row stays for loan and fine history."""
        self._access.require_school_access(user_id=user_id, school_id=school_id)
        member = self._require_member(member_id, school_id=school_id)

        if self._transactions.count_active_for_member(member.id) > 0:
            raise ValidationError("Cannot remove member with active book transactions")
        if self._fines.total_unpaid_for_member(member.id) > 0:
            raise ValidationError("Cannot remove member with unpaid fines")

        self._members.update(member.id, school_id=school_id, changes={"status": MemberStatus.DELETED})
        logger.info("Library member %s removed", member.id)

    def _require_member(self, member_id: str, *, school_id: str) -> LibraryMember:
        member = self._members.get_by_id(member_id, school_id=school_id)
        if not member:
            raise NotFoundError("Member not found")
        return member
