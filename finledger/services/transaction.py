from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from finledger.core.money import magnitude
from finledger.db.utils import atomic
from finledger.exceptions.http import ValidationError
from finledger.models.ledger import Transaction, TransactionType
from finledger.repositories import AccountRepository, TransactionRepository
from finledger.schemas import TransactionRequest, TransactionResponse, TransactionUpdateRequest

from .common import ensure_found, ensure_owner, is_missing, require_fields, required

logger = structlog.get_logger(__name__)

# Checked in this order; the first missing field wins
REQUIRED_FIELDS = {
    "description": required("Descrição"),
    "amount": required("Valor"),
    "date": required("Data"),
    "acc_id": required("Conta"),
    "type": required("Tipo"),
}
INVALID_TYPE = "Tipo inválido"


def parse_type(value: Any) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError as e:
        raise ValidationError(INVALID_TYPE) from e


def signed_amount(amount: Any, tx_type: TransactionType) -> Decimal:
    """
    Normalises an amount to the sign its type requires.

    The caller's sign is discarded: inflows are stored as +|amount|,
    outflows as -|amount|.
    """
    value = magnitude(amount)
    if tx_type is TransactionType.OUTFLOW and value:
        return -value
    return value


class TransactionService:
    """
    Single-account ledger entries for one acting user.

    Ownership is never stored on an entry; it is resolved by joining through the
    account, inside the same transaction as the read or write it protects.
    """

    def __init__(self, session: AsyncSession, user_id: int):
        self._session = session
        self._user_id = user_id
        self._account_repo = AccountRepository(session)
        self._transaction_repo = TransactionRepository(session)

    async def _get_owned(self, transaction_id: int) -> Transaction:
        transaction, owner_id = ensure_found(await self._transaction_repo.get_with_owner(transaction_id))
        ensure_owner(owner_id, self._user_id)
        return transaction

    # --- 1. CREATE ---

    async def create(self, data: TransactionRequest) -> TransactionResponse:
        """
        Books a new entry on one of the caller's accounts.

        Raises:
            ValidationError: A required field is missing or 'type' is unknown.
            NotFoundError: The account does not exist.
            ForbiddenError: The account belongs to another user.
        """
        async with atomic(self._session):
            payload = self._validate(data.model_dump())
            # Only the Transfer Service links entries to a transfer
            payload["transfer_id"] = None
            account = ensure_found(await self._account_repo.get_by_id(payload["acc_id"]))
            ensure_owner(account.user_id, self._user_id)

            transaction = await self._transaction_repo.create(payload)

            logger.info(
                "transaction_created", transaction_id=transaction.id, acc_id=transaction.acc_id, user_id=self._user_id
            )
            return TransactionResponse.model_validate(transaction)

    async def post_leg(self, data: TransactionRequest) -> Transaction:
        """
        Inserts one transfer leg. Validates and normalises exactly like create()
        but skips the account ownership check.

        CRITICAL: Relies on the caller's transaction boundary; the Transfer
        Service owns the atomic unit the two legs are written in.
        """
        payload = self._validate(data.model_dump())
        ensure_found(await self._account_repo.get_by_id(payload["acc_id"]))
        return await self._transaction_repo.create(payload)

    @staticmethod
    def _validate(payload: dict[str, Any]) -> dict[str, Any]:
        require_fields(payload, REQUIRED_FIELDS)
        tx_type = parse_type(payload["type"])
        payload["type"] = tx_type.value
        payload["amount"] = signed_amount(payload["amount"], tx_type)
        return payload

    # --- 2. READ ---

    async def get_by_id(self, transaction_id: int) -> TransactionResponse:
        async with atomic(self._session):
            return TransactionResponse.model_validate(await self._get_owned(transaction_id))

    async def list(self) -> list[TransactionResponse]:
        """Entries booked on any of the caller's accounts."""
        async with atomic(self._session):
            transactions = await self._transaction_repo.get_user_transactions(self._user_id)
            return [TransactionResponse.model_validate(transaction) for transaction in transactions]

    # --- 3. UPDATE / DELETE ---

    async def update(self, transaction_id: int, data: TransactionUpdateRequest) -> TransactionResponse:
        """
        Applies the fields that were sent. If amount or type changes, the stored
        amount is re-normalised against the resulting type.
        """
        update_data = data.model_dump(exclude_unset=True)
        for field in ("description", "amount", "date", "type"):
            if field in update_data and is_missing(update_data[field]):
                raise ValidationError(REQUIRED_FIELDS[field])

        async with atomic(self._session):
            transaction = await self._get_owned(transaction_id)

            if "amount" in update_data or "type" in update_data:
                tx_type = parse_type(update_data.get("type", transaction.type))
                update_data["type"] = tx_type.value
                update_data["amount"] = signed_amount(update_data.get("amount", transaction.amount), tx_type)

            if update_data.get("status") is None:
                update_data.pop("status", None)

            transaction = await self._transaction_repo.update(transaction, update_data)

            logger.info("transaction_updated", transaction_id=transaction.id, user_id=self._user_id)
            return TransactionResponse.model_validate(transaction)

    async def delete(self, transaction_id: int) -> None:
        async with atomic(self._session):
            transaction = await self._get_owned(transaction_id)
            await self._transaction_repo.delete(transaction)

            logger.info("transaction_deleted", transaction_id=transaction_id, user_id=self._user_id)
