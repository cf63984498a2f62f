from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from finledger.db.utils import apply_dict_updates
from finledger.models.ledger import Account, Transaction


class TransactionRepository:
    """
    Manages data access for ledger entries (T_Transaction).
    Ownership is resolved by joining through Account, never stored on the entry.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # --- 1. RETRIEVAL ---

    async def get_with_owner(self, transaction_id: int) -> tuple[Transaction, int] | None:
        """
        Retrieves an entry together with the user_id of the account it is booked
        on, in a single joined query.
        """
        stmt = (
            select(Transaction, Account.user_id)
            .join(Account, Transaction.acc_id == Account.id)
            .where(Transaction.id == transaction_id)
        )
        row = (await self.session.execute(stmt)).one_or_none()
        return (row[0], row[1]) if row else None

    async def get_user_transactions(self, user_id: int) -> Sequence[Transaction]:
        """Retrieves every entry booked on any account owned by the user."""
        stmt = (
            select(Transaction)
            .join(Account, Transaction.acc_id == Account.id)
            .where(Account.user_id == user_id)
            .order_by(Transaction.id)
        )
        return (await self.session.scalars(stmt)).all()

    # --- 2. WRITES (rely on the caller's transaction boundary) ---

    async def create(self, create_data: dict[str, Any]) -> Transaction:
        transaction = apply_dict_updates(Transaction(), create_data)
        self.session.add(transaction)
        await self.session.flush()
        return transaction

    async def update(self, transaction: Transaction, update_data: dict[str, Any]) -> Transaction:
        apply_dict_updates(transaction, update_data, excluded_attrs={"acc_id", "transfer_id"})
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def delete(self, transaction: Transaction) -> None:
        await self.session.delete(transaction)
        await self.session.flush()

    async def delete_by_transfer_id(self, transfer_id: int) -> int:
        """
        Deletes every leg of a transfer in one statement.

        Returns:
            The number of deleted rows.
        """
        stmt = (
            delete(Transaction)
            .where(Transaction.transfer_id == transfer_id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount
