from dataclasses import replace

import pytest

from src.school_admin.school_admin.core.exceptions import AuthorizationError

SCHOOL_ID = "11111111-aaaa-4000-8000-000000000001"


def test_member_of_school_passes(access):
    profile = access.require_school_access(user_id="librarian-1", school_id=SCHOOL_ID)
    assert profile.id == "librarian-1"


@pytest.mark.parametrize("user_id", ["outsider-1", "ghost", ""])
def test_everyone_else_is_unauthorized(access, user_id):
    with pytest.raises(AuthorizationError, match="Unauthorized"):
        access.require_school_access(user_id=user_id, school_id=SCHOOL_ID)


def test_profile_reread_on_every_call(access, profiles):
    access.require_school_access(user_id="librarian-1", school_id=SCHOOL_ID)
    profiles.add(replace(profiles.get_by_id("librarian-1"), school_id="moved-elsewhere"))

    with pytest.raises(AuthorizationError):
        access.require_school_access(user_id="librarian-1", school_id=SCHOOL_ID)
