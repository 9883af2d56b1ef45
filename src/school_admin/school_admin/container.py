from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .core.constants import DAILY_FINE_RATE
from .database.connection import DBConfig, DatabaseConnection
from .fees.mysql_payment_repository import MySQLPaymentRepository
from .fees.service import PaymentService
from .identity.mysql_identity_provider import MySQLIdentityProvider
from .identity.service import AuthService
from .library.calculator.daily_rate_calculator import DailyRateFineCalculator
from .library.catalog_service import CatalogService
from .library.fine_service import FineService
from .library.member_service import MemberService
from .library.mysql_book_repository import MySQLBookRepository
from .library.mysql_fine_repository import MySQLFineRepository
from .library.mysql_member_repository import MySQLMemberRepository
from .library.mysql_transaction_repository import MySQLTransactionRepository
from .library.service import CirculationService
from .profiles.access import SchoolAccessService
from .profiles.mysql_profile_repository import MySQLProfileRepository
from .teachers.service import TeacherService
from .users.mysql_role_record_repository import MySQLRoleRecordRepository
from .users.service import UserProvisioningService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    identities: MySQLIdentityProvider
    profiles_repo: MySQLProfileRepository
    role_records_repo: MySQLRoleRecordRepository
    members_repo: MySQLMemberRepository
    books_repo: MySQLBookRepository
    transactions_repo: MySQLTransactionRepository
    fines_repo: MySQLFineRepository
    payments_repo: MySQLPaymentRepository

    access_service: SchoolAccessService
    auth_service: AuthService
    user_provisioning_service: UserProvisioningService
    teacher_service: TeacherService
    circulation_service: CirculationService
    member_service: MemberService
    fine_service: FineService
    catalog_service: CatalogService
    payment_service: PaymentService


def build_container(*, db_config: dict, daily_fine_rate: Decimal = DAILY_FINE_RATE) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    identities = MySQLIdentityProvider(conn)
    profiles_repo = MySQLProfileRepository(conn)
    role_records_repo = MySQLRoleRecordRepository(conn)
    members_repo = MySQLMemberRepository(conn)
    books_repo = MySQLBookRepository(conn)
    transactions_repo = MySQLTransactionRepository(conn)
    fines_repo = MySQLFineRepository(conn)
    payments_repo = MySQLPaymentRepository(conn)

    access_service = SchoolAccessService(profiles_repo)
    auth_service = AuthService(identities, profiles_repo)
    user_provisioning_service = UserProvisioningService(identities, profiles_repo, role_records_repo)
    teacher_service = TeacherService(access_service, identities, profiles_repo, role_records_repo)
    circulation_service = CirculationService(
        access_service,
        members_repo,
        books_repo,
        transactions_repo,
        fines_repo,
        fine_calculator=DailyRateFineCalculator(daily_fine_rate),
    )
    member_service = MemberService(access_service, profiles_repo, members_repo, transactions_repo, fines_repo)
    fine_service = FineService(access_service, fines_repo, members_repo)
    catalog_service = CatalogService(access_service, books_repo)
    payment_service = PaymentService(access_service, payments_repo)

    return Container(
        conn=conn,
        identities=identities,
        profiles_repo=profiles_repo,
        role_records_repo=role_records_repo,
        members_repo=members_repo,
        books_repo=books_repo,
        transactions_repo=transactions_repo,
        fines_repo=fines_repo,
        payments_repo=payments_repo,
        access_service=access_service,
        auth_service=auth_service,
        user_provisioning_service=user_provisioning_service,
        teacher_service=teacher_service,
        circulation_service=circulation_service,
        member_service=member_service,
        fine_service=fine_service,
        catalog_service=catalog_service,
        payment_service=payment_service,
    )
