"""
Shared fixtures: a fresh SQLite ledger per test, plus fixture users/accounts.
"""

import os

# Cheap hashes for the test-suite; read by get_settings() at call time
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio

from finledger.db import create_engine, create_session_factory, init_db
from finledger.models import Account, User
from finledger.models.seed import run_seeding


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine on a throw-away database file with the schema created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    """The session the services under test run on."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(session_factory) -> tuple[User, User]:
    """Two users: the acting one and a stranger."""
    async with session_factory() as s, s.begin():
        user = User(name="User #1", email="user1@email.com", password_hash="not-a-hash")
        other = User(name="User #2", email="user2@email.com", password_hash="not-a-hash")
        s.add_all([user, other])
    return user, other


@pytest_asyncio.fixture
async def accounts(session_factory, users) -> tuple[Account, Account]:
    """One account per fixture user."""
    user, other = users
    async with session_factory() as s, s.begin():
        acc_user = Account(name="Acc #1", user_id=user.id)
        acc_other = Account(name="Acc #2", user_id=other.id)
        s.add_all([acc_user, acc_other])
    return acc_user, acc_other


@pytest_asyncio.fixture
async def seeded(session_factory) -> None:
    """The demo ledger: users 10000/10001, accounts 10000-10003, transfers 10000/10001."""
    async with session_factory() as s:
        await s.run_sync(run_seeding)
