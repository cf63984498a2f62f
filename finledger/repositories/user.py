from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finledger.db.utils import apply_dict_updates
from finledger.models.definitions import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> User | None:
        """Retrieves a User by their primary ID."""
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        """Retrieves a User by their unique email (login ID)."""
        stmt = select(User).where(User.email == email)
        return (await self.session.scalars(stmt)).one_or_none()

    async def get_all(self) -> Sequence[User]:
        stmt = select(User).order_by(User.id)
        return (await self.session.scalars(stmt)).all()

    async def create(self, create_data: dict[str, Any]) -> User:
        """Creates a new User record and persists it (relies on the caller's transaction)."""
        user = apply_dict_updates(User(), create_data)
        self.session.add(user)
        await self.session.flush()
        return user
