from __future__ import annotations

import uuid
from typing import Optional

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Identity
from .provider import DUPLICATE_EMAIL_MESSAGE, IdentityProvider


class MySQLIdentityProvider(IdentityProvider):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_email(self, email: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, email, password_hash FROM auth_users WHERE email=%s",
                (email.lower(),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Identity(id=row["id"], email=row["email"], password_hash=row["password_hash"])

    def create_identity(self, *, email: str, password: str) -> Identity:
        identity = Identity(
            id=str(uuid.uuid4()),
            email=email.lower(),
            password_hash=generate_password_hash(password),
        )
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO auth_users(id, email, password_hash) VALUES(%s,%s,%s)",
                    (identity.id, identity.email, identity.password_hash),
                )
        except mysql.connector.IntegrityError:
            raise ValidationError(DUPLICATE_EMAIL_MESSAGE)
        return identity

    def delete_identity(self, identity_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM auth_users WHERE id=%s", (identity_id,))
            return cur.rowcount > 0
