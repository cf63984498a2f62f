from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from finledger.db.utils import apply_dict_updates
from finledger.models.ledger import Transfer


class TransferRepository:
    """
    Manages data access for T_Transfer. Reads always load the two legs eagerly,
    since lazy loading is not available on an AsyncSession.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, transfer_id: int) -> Transfer | None:
        """
        Retrieves a Transfer with its legs. Already-loaded instances are
        refreshed so that legs replaced in this transaction are picked up.
        """
        stmt = (
            select(Transfer)
            .where(Transfer.id == transfer_id)
            .options(selectinload(Transfer.transactions))
            .execution_options(populate_existing=True)
        )
        return (await self.session.scalars(stmt)).one_or_none()

    async def get_user_transfers(self, user_id: int) -> Sequence[Transfer]:
        stmt = (
            select(Transfer)
            .where(Transfer.user_id == user_id)
            .options(selectinload(Transfer.transactions))
            .order_by(Transfer.id)
            .execution_options(populate_existing=True)
        )
        return (await self.session.scalars(stmt)).all()

    async def create(self, create_data: dict[str, Any]) -> Transfer:
        transfer = apply_dict_updates(Transfer(), create_data)
        self.session.add(transfer)
        await self.session.flush()
        return transfer

    async def update(self, transfer: Transfer, update_data: dict[str, Any]) -> Transfer:
        apply_dict_updates(transfer, update_data, excluded_attrs={"user_id"})
        await self.session.flush()
        return transfer

    async def delete(self, transfer_id: int) -> None:
        """
        Deletes the transfer row with a plain DELETE statement. The legs must be
        deleted first; the ORM collection is not walked.
        """
        stmt = delete(Transfer).where(Transfer.id == transfer_id).execution_options(synchronize_session="fetch")
        await self.session.execute(stmt)
