from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Profile
from .repository import ProfileRepository

_COLUMNS = "id, school_id, name, email, phone, address, role"


def _to_profile(row: dict) -> Profile:
    return Profile(
        id=row["id"],
        school_id=row.get("school_id"),
        name=row["name"],
        email=row["email"],
        role=Role(row["role"]),
        phone=row.get("phone"),
        address=row.get("address"),
    )


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE id=%s", (profile_id,))
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def upsert(
        self,
        *,
        profile_id: str,
        school_id: str,
        name: str,
        email: str,
        role: Role,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO profiles(id, school_id, name, email, phone, address, role)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    school_id=VALUES(school_id),
                    name=VALUES(name),
                    phone=COALESCE(VALUES(phone), phone),
                    address=COALESCE(VALUES(address), address)
                """,
                (profile_id, school_id, name, email, phone, address, role.value),
            )

    def list_by_role(self, *, school_id: str, role: Role) -> Sequence[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM profiles WHERE school_id=%s AND role=%s ORDER BY name",
                (school_id, role.value),
            )
            return [_to_profile(r) for r in fetchall(cur)]
