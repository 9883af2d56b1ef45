from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..core.exceptions import ProvisioningError, ValidationError
from ..identity.provider import DUPLICATE_EMAIL_MESSAGE, IdentityProvider
from ..profiles.access import SchoolAccessService
from ..profiles.model import Profile
from ..profiles.repository import ProfileRepository
from ..users.repository import RoleRecordRepository
from ..users.service import DEFAULT_DESIGNATION, discard_identity, generate_employee_id
from .model import CreatedTeacher, NewTeacher, TeacherRecord

logger = logging.getLogger(__name__)


class TeacherService:
    def __init__(
        self,
        access: SchoolAccessService,
        identities: IdentityProvider,
        profiles: ProfileRepository,
        role_records: RoleRecordRepository,
    ):
        self._access = access
        self._identities = identities
        self._profiles = profiles
        self._role_records = role_records

    def list_teachers(self, *, school_id: str, user_id: str) -> Sequence[Profile]:
        self._access.require_school_access(user_id=user_id, school_id=school_id)
        return self._profiles.list_by_role(school_id=school_id, role=Role.TEACHER)

    def create_teacher(self, new_teacher: NewTeacher, *, now: Optional[datetime] = None) -> CreatedTeacher:
        now = now or now_local()
        self._access.require_school_access(user_id=new_teacher.user_id, school_id=new_teacher.school_id)

        if self._identities.get_by_email(new_teacher.email):
            raise ValidationError(DUPLICATE_EMAIL_MESSAGE)

        temporary_password = None
        password = new_teacher.password
        if not password:
            temporary_password = password = secrets.token_urlsafe(9)

        identity = self._identities.create_identity(email=new_teacher.email, password=password)

        try:
            self._profiles.upsert(
                profile_id=identity.id,
                school_id=new_teacher.school_id,
                name=new_teacher.name,
                email=identity.email,
                role=Role.TEACHER,
                phone=new_teacher.phone,
                address=new_teacher.address,
            )
        except Exception as e:
            logger.error("Teacher profile failed for %s: %s", identity.id, e)
            discard_identity(self._identities, identity.id)
            raise ProvisioningError("Failed to create teacher profile")

        record = TeacherRecord(
            employee_id=generate_employee_id(now),
            designation=DEFAULT_DESIGNATION,
            joining_date=now.date(),
        )
        try:
            self._role_records.create_teacher(
                profile_id=identity.id,
                school_id=new_teacher.school_id,
                employee_id=record.employee_id,
                designation=record.designation,
                joining_date=record.joining_date,
            )
        except Exception as e:
            logger.error("Teacher record failed for %s: %s", identity.id, e)
            discard_identity(self._identities, identity.id)
            raise ProvisioningError("Failed to create teacher record")

        profile = self._profiles.get_by_id(identity.id)
        if not profile:
            discard_identity(self._identities, identity.id)
            raise ProvisioningError("Teacher record creation verification failed")

        logger.info("Teacher %s created (%s)", identity.id, record.employee_id)
        return CreatedTeacher(
            id=identity.id,
            profile=profile,
            teacher=record,
            temporary_password=temporary_password,
        )
