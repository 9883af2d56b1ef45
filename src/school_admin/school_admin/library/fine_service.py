from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import FineStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..profiles.access import SchoolAccessService
from .commands import FineQuery
from .model import Fine
from .repository import FineRepository, MemberRepository

logger = logging.getLogger(__name__)


class FineService:
    def __init__(self, access: SchoolAccessService, fines: FineRepository, members: MemberRepository):
        self._access = access
        self._fines = fines
        self._members = members

    def list_fines(self, query: FineQuery) -> Sequence[Fine]:
        self._access.require_school_access(user_id=query.user_id, school_id=query.school_id)
        return self._fines.list_for_school(school_id=query.school_id, status=query.status, member_id=query.member_id)

    def pay_fine(self, fine_id: str, *, school_id: str, user_id: str, now: Optional[datetime] = None) -> Fine:
        """Settle an unpaid fine and move its amount into the member's paid total."""
        now = now or now_local()
        self._access.require_school_access(user_id=user_id, school_id=school_id)

        fine = self._fines.get(fine_id, school_id=school_id)
        if not fine:
            raise NotFoundError("Fine not found")
        if fine.status != FineStatus.UNPAID:
            raise ValidationError("Fine has already been paid")

        if not self._fines.mark_paid(fine.id, processed_by=user_id, paid_at=now):
            raise ConflictError("Fine has already been paid")
        self._members.settle_fine(fine.member_id, fine.amount)

        logger.info("Fine %s paid (%s) for member %s", fine.id, fine.amount, fine.member_id)
        return self._fines.get(fine.id, school_id=school_id) or fine
