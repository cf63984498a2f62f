from datetime import UTC, datetime
from decimal import Decimal

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finledger.core.security import hash_password

from .definitions import User
from .ledger import Account, Transaction, TransactionType, Transfer

logger = structlog.get_logger(__name__)

# --- STATIC DATA DEFINITIONS ---

# Shared clear-text password of the demo users
SEED_PASSWORD = "123456"

# 1. T_User Seed Data
# Structure: (id, name, email)
USERS_SEED_DATA: list[tuple[int, str, str]] = [
    (10000, "User #1", "user1@email.com"),
    (10001, "User #2", "user2@email.com"),
]

# 2. T_Account Seed Data: two accounts per user, origin and destination
# Structure: (id, name, user_id)
ACCOUNTS_SEED_DATA: list[tuple[int, str, int]] = [
    (10000, "AccO #1", 10000),
    (10001, "AccD #1", 10000),
    (10002, "AccO #2", 10001),
    (10003, "AccD #2", 10001),
]

# 3. T_Transfer Seed Data: one posted transfer per user
# Structure: (id, description, user_id, acc_ori_id, acc_dest_id, amount)
TRANSFERS_SEED_DATA: list[tuple[int, str, int, int, int, Decimal]] = [
    (10000, "Transfer #1", 10000, 10000, 10001, Decimal("100.00")),
    (10001, "Transfer #2", 10001, 10002, 10003, Decimal("100.00")),
]

# --- SEEDING FUNCTIONS ---


def initialize_users(session: Session) -> None:
    """
    Initializes the T_User table with the demo users.
    Uses hardcoded IDs so the account and transfer fixtures can reference them.
    """
    logger.info("seeding_users")
    password_hash = hash_password(SEED_PASSWORD)

    for id_hint, name, email in USERS_SEED_DATA:
        if session.get(User, id_hint):
            logger.debug("seed_skipped", table="users", id=id_hint)
            continue

        session.add(User(id=id_hint, name=name, email=email, password_hash=password_hash))
        logger.debug("seed_created", table="users", id=id_hint)

    session.flush()


def initialize_accounts(session: Session) -> None:
    logger.info("seeding_accounts")

    for id_hint, name, user_id in ACCOUNTS_SEED_DATA:
        if session.get(Account, id_hint):
            logger.debug("seed_skipped", table="accounts", id=id_hint)
            continue

        session.add(Account(id=id_hint, name=name, user_id=user_id))
        logger.debug("seed_created", table="accounts", id=id_hint)

    session.flush()


def initialize_transfers(session: Session) -> None:
    """
    Initializes the T_Transfer table together with the two posted legs of
    every transfer, so the fixture ledger starts out consistent.
    """
    logger.info("seeding_transfers")
    posted_at = datetime.now(UTC)

    for id_hint, description, user_id, acc_ori_id, acc_dest_id, amount in TRANSFERS_SEED_DATA:
        if session.get(Transfer, id_hint):
            logger.debug("seed_skipped", table="transfers", id=id_hint)
            continue

        session.add(
            Transfer(
                id=id_hint,
                description=description,
                date=posted_at,
                amount=amount,
                user_id=user_id,
                acc_ori_id=acc_ori_id,
                acc_dest_id=acc_dest_id,
            )
        )
        session.flush()  # The legs reference the transfer row

        session.add_all(
            [
                Transaction(
                    description=f"Transfer to acc #{acc_dest_id}",
                    date=posted_at,
                    amount=-amount,
                    type=TransactionType.OUTFLOW,
                    acc_id=acc_ori_id,
                    transfer_id=id_hint,
                    status=True,
                ),
                Transaction(
                    description=f"Transfer from acc #{acc_ori_id}",
                    date=posted_at,
                    amount=amount,
                    type=TransactionType.INFLOW,
                    acc_id=acc_dest_id,
                    transfer_id=id_hint,
                    status=True,
                ),
            ]
        )
        logger.debug("seed_created", table="transfers", id=id_hint)

    session.flush()


def run_seeding(session: Session) -> None:
    """
    The main entry point to execute all seeding functions in one transaction.

    From async code, run it through ``await async_session.run_sync(run_seeding)``.

    Raises:
        IntegrityError: If fixture rows collide with existing data (e.g. a
            seed email already used by another user). Nothing is kept.
    """
    logger.info("seeding_started")
    try:
        initialize_users(session)
        initialize_accounts(session)
        initialize_transfers(session)
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.error("seeding_failed", reason="integrity_error")
        raise
    logger.info("seeding_finished")
