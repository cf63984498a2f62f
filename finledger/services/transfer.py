from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from finledger.core.money import magnitude
from finledger.db.utils import atomic
from finledger.exceptions.http import ValidationError
from finledger.models.ledger import TransactionType, Transfer
from finledger.repositories import AccountRepository, TransactionRepository, TransferRepository
from finledger.schemas import TransactionRequest, TransferRequest, TransferResponse

from .common import ensure_found, ensure_owner, require_fields, required
from .transaction import TransactionService

logger = structlog.get_logger(__name__)

# Checked in this order; the first missing field wins
REQUIRED_FIELDS = {
    "description": required("Descrição"),
    "amount": required("Valor"),
    "date": required("Data"),
    "acc_ori_id": "Conta de origem é obrigatória",
    "acc_dest_id": "Conta de destino é obrigatória",
}
SAME_ACCOUNT = "Conta de origem deve ser diferente da conta de destino"

_MUTABLE_FIELDS = ("description", "date", "amount", "acc_ori_id", "acc_dest_id")


def origin_not_owned(account_id: int) -> str:
    return f"Conta de origem #{account_id} não pertence ao usuário"


class TransferService:
    """
    Transfers between two accounts of the acting user.

    A transfer is posted atomically: the transfer row and its two legs (an
    outflow on the origin, an inflow on the destination) are written in ONE
    store transaction, or not at all. There is no pending state.
    """

    def __init__(self, session: AsyncSession, user_id: int):
        self._session = session
        self._user_id = user_id
        self._account_repo = AccountRepository(session)
        self._transaction_repo = TransactionRepository(session)
        self._transfer_repo = TransferRepository(session)
        self._transaction_service = TransactionService(session, user_id)

    async def _get_owned(self, transfer_id: int) -> Transfer:
        transfer = ensure_found(await self._transfer_repo.get_by_id(transfer_id))
        ensure_owner(transfer.user_id, self._user_id)
        return transfer

    async def _validate(self, payload: dict[str, Any]) -> None:
        """
        Field presence, distinct accounts, origin ownership, destination existence.

        Only the ORIGIN account is checked for ownership; the destination is
        accepted as long as it exists.
        """
        require_fields(payload, REQUIRED_FIELDS)

        if payload["acc_ori_id"] == payload["acc_dest_id"]:
            raise ValidationError(SAME_ACCOUNT)

        origin = await self._account_repo.get_by_id(payload["acc_ori_id"])
        owner_id = origin.user_id if origin else None
        ensure_owner(owner_id, self._user_id, message=origin_not_owned(payload["acc_ori_id"]))

        ensure_found(await self._account_repo.get_by_id(payload["acc_dest_id"]))

    async def _post_legs(self, transfer: Transfer) -> None:
        """Writes the outbound and inbound legs of a transfer. Runs inside the caller's atomic unit."""
        outbound = TransactionRequest(
            description=f"Transfer to acc #{transfer.acc_dest_id}",
            date=transfer.date,
            amount=transfer.amount,
            type=TransactionType.OUTFLOW.value,
            acc_id=transfer.acc_ori_id,
            transfer_id=transfer.id,
            status=True,
        )
        inbound = TransactionRequest(
            description=f"Transfer from acc #{transfer.acc_ori_id}",
            date=transfer.date,
            amount=transfer.amount,
            type=TransactionType.INFLOW.value,
            acc_id=transfer.acc_dest_id,
            transfer_id=transfer.id,
            status=True,
        )
        await self._transaction_service.post_leg(outbound)
        await self._transaction_service.post_leg(inbound)

    async def _reload(self, transfer_id: int) -> TransferResponse:
        transfer = await self._transfer_repo.get_by_id(transfer_id)
        return TransferResponse.model_validate(transfer)

    # --- 1. POSTING (Atomic Operation) ---

    async def create(self, data: TransferRequest) -> TransferResponse:
        """
        Posts a new transfer ATOMICALLY: the transfer row plus its two legs.

        Raises:
            ValidationError: Missing field, or origin equals destination.
            ForbiddenError: The origin account is not the caller's.
            NotFoundError: The destination account does not exist.
        """
        async with atomic(self._session):
            payload = data.model_dump()
            await self._validate(payload)
            payload["amount"] = magnitude(payload["amount"])
            payload["user_id"] = self._user_id

            transfer = await self._transfer_repo.create(payload)
            await self._post_legs(transfer)

            logger.info(
                "transfer_posted",
                transfer_id=transfer.id,
                acc_ori_id=transfer.acc_ori_id,
                acc_dest_id=transfer.acc_dest_id,
                user_id=self._user_id,
            )
            return await self._reload(transfer.id)

    async def update(self, transfer_id: int, data: TransferRequest) -> TransferResponse:
        """
        Re-posts a transfer ATOMICALLY under the same id.

        The fields sent are merged onto the stored transfer and the merged set
        is validated like a new transfer. Both old legs are deleted and two new
        ones are written; no leg from before the update survives.
        """
        async with atomic(self._session):
            transfer = await self._get_owned(transfer_id)

            payload = {field: getattr(transfer, field) for field in _MUTABLE_FIELDS}
            payload.update(data.model_dump(exclude_unset=True))
            await self._validate(payload)
            payload["amount"] = magnitude(payload["amount"])

            removed = await self._transaction_repo.delete_by_transfer_id(transfer.id)
            transfer = await self._transfer_repo.update(transfer, payload)
            await self._post_legs(transfer)

            logger.info("transfer_reposted", transfer_id=transfer.id, legs_replaced=removed, user_id=self._user_id)
            return await self._reload(transfer.id)

    async def delete(self, transfer_id: int) -> None:
        """Deletes both legs, then the transfer row, in one atomic unit."""
        async with atomic(self._session):
            transfer = await self._get_owned(transfer_id)

            await self._transaction_repo.delete_by_transfer_id(transfer.id)
            await self._transfer_repo.delete(transfer.id)

            logger.info("transfer_deleted", transfer_id=transfer_id, user_id=self._user_id)

    # --- 2. READ ---

    async def get_by_id(self, transfer_id: int) -> TransferResponse:
        async with atomic(self._session):
            return TransferResponse.model_validate(await self._get_owned(transfer_id))

    async def list(self) -> list[TransferResponse]:
        async with atomic(self._session):
            transfers = await self._transfer_repo.get_user_transfers(self._user_id)
            return [TransferResponse.model_validate(transfer) for transfer in transfers]
