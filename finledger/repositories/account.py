from collections.abc import Sequence
from typing import Any

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from finledger.db.utils import apply_dict_updates
from finledger.models.ledger import Account, Transaction


class AccountRepository:
    """
    Manages data access for user-owned accounts (T_Account).
    No ownership rules live here; the Service Layer enforces them.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # --- 1. Lookups ---

    async def get_by_id(self, account_id: int) -> Account | None:
        """Retrieves an Account by its ID."""
        return await self.session.get(Account, account_id)

    async def get_user_accounts(self, user_id: int) -> Sequence[Account]:
        """Retrieves all Accounts owned by a specific user."""
        stmt = select(Account).where(Account.user_id == user_id).order_by(Account.id)
        return (await self.session.scalars(stmt)).all()

    async def get_by_name(self, user_id: int, name: str) -> Account | None:
        """Retrieves the user's Account with the given name, if any (names are unique per user)."""
        stmt = select(Account).where(Account.user_id == user_id, Account.name == name)
        return (await self.session.scalars(stmt)).one_or_none()

    async def has_transactions(self, account_id: int) -> bool:
        """True if at least one Transaction is booked on the account."""
        stmt = select(exists().where(Transaction.acc_id == account_id))
        return bool(await self.session.scalar(stmt))

    # --- 2. Writes (rely on the caller's transaction boundary) ---

    async def create(self, create_data: dict[str, Any]) -> Account:
        account = apply_dict_updates(Account(), create_data)
        self.session.add(account)
        await self.session.flush()
        return account

    async def update(self, account: Account, update_data: dict[str, Any]) -> Account:
        apply_dict_updates(account, update_data, excluded_attrs={"user_id"})
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def delete(self, account: Account) -> None:
        await self.session.delete(account)
        await self.session.flush()
