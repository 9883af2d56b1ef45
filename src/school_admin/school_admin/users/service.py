from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.constants import EMPLOYEE_ID_PREFIX
from ..core.enums import Role
from ..core.exceptions import ProvisioningError, ValidationError
from ..identity.provider import DUPLICATE_EMAIL_MESSAGE, IdentityProvider
from ..profiles.repository import ProfileRepository
from .model import NewUser, ProvisionedUser
from .repository import RoleRecordRepository

logger = logging.getLogger(__name__)

DEFAULT_ADMISSION_TYPE = "manual"
DEFAULT_DESIGNATION = "Teacher"


def generate_employee_id(now: datetime) -> str:
    return f"{EMPLOYEE_ID_PREFIX}{int(now.timestamp() * 1000)}"


def discard_identity(identities: IdentityProvider, identity_id: str) -> None:
    """Compensating delete after a dependent write failed.

    Best-effort: a failure here is logged and swallowed so the caller can still
    report the original error. Profile and role rows cascade from the identity.
    """
    try:
        if not identities.delete_identity(identity_id):
            logger.warning("Compensating delete found no identity %s", identity_id)
    except Exception:
        logger.exception("Compensating delete of identity %s failed; record may be orphaned", identity_id)


class UserProvisioningService:
    """Use case: admin creates an account (identity + profile + role record)."""

    def __init__(self, identities: IdentityProvider, profiles: ProfileRepository, role_records: RoleRecordRepository):
        self._identities = identities
        self._profiles = profiles
        self._role_records = role_records

    def create_user(self, new_user: NewUser, *, now: Optional[datetime] = None) -> ProvisionedUser:
        now = now or now_local()
        logger.info("Creating user email=%s role=%s school=%s", new_user.email, new_user.role.value, new_user.school_id)

        if self._identities.get_by_email(new_user.email):
            raise ValidationError(DUPLICATE_EMAIL_MESSAGE)

        identity = self._identities.create_identity(email=new_user.email, password=new_user.password)

        try:
            self._profiles.upsert(
                profile_id=identity.id,
                school_id=new_user.school_id,
                name=new_user.name,
                email=identity.email,
                role=new_user.role,
            )
        except Exception as e:
            logger.error("Profile update failed for %s: %s", identity.id, e)
            discard_identity(self._identities, identity.id)
            raise ProvisioningError(f"Failed to update profile: {e}")

        try:
            self.create_role_record(profile_id=identity.id, role=new_user.role, school_id=new_user.school_id, now=now)
        except Exception as e:
            logger.error("Role-specific record failed for %s: %s", identity.id, e)
            discard_identity(self._identities, identity.id)
            raise ProvisioningError(f"Failed to create role-specific record: {e}")

        profile = self._profiles.get_by_id(identity.id)
        logger.info("User %s created", identity.id)
        return ProvisionedUser(
            id=identity.id,
            email=profile.email if profile else identity.email,
            name=profile.name if profile else new_user.name,
            role=profile.role if profile else new_user.role,
            school_id=(profile.school_id if profile else None) or new_user.school_id,
        )

    def create_role_record(self, *, profile_id: str, role: Role, school_id: str, now: datetime) -> None:
        if role == Role.ADMIN:
            self._role_records.create_admin(profile_id=profile_id, school_id=school_id)
        elif role == Role.SUB_ADMIN:
            self._role_records.create_sub_admin(profile_id=profile_id, school_id=school_id)
        elif role == Role.TEACHER:
            self._role_records.create_teacher(
                profile_id=profile_id,
                school_id=school_id,
                employee_id=generate_employee_id(now),
                designation=DEFAULT_DESIGNATION,
                joining_date=now.date(),
            )
        elif role == Role.STUDENT:
            self._role_records.create_student(
                profile_id=profile_id,
                school_id=school_id,
                admission_type=DEFAULT_ADMISSION_TYPE,
            )
        else:
            raise ValidationError(f"Unknown role: {role}")
