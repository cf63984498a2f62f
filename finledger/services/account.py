import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finledger.db.utils import atomic
from finledger.exceptions.http import ConflictError, ValidationError
from finledger.models.ledger import Account
from finledger.repositories import AccountRepository
from finledger.schemas import AccountRequest, AccountResponse

from .common import ensure_found, ensure_owner, is_missing, required

logger = structlog.get_logger(__name__)

NAME_REQUIRED = required("Nome")
DUPLICATE_NAME = "Já existe uma conta com esse nome"
HAS_TRANSACTIONS = "Essa conta possui transações associadas"


class AccountService:
    """
    Account lifecycle for one acting user.

    Every check (ownership, duplicate name, existing transactions) runs in the
    same transaction as the write it guards. The unique (name, user_id)
    constraint and the RESTRICT foreign key are the backstop for concurrent
    requests: their IntegrityError is reported as the same ConflictError.
    """

    def __init__(self, session: AsyncSession, user_id: int):
        self._session = session
        self._user_id = user_id
        self._account_repo = AccountRepository(session)

    async def _get_owned(self, account_id: int) -> Account:
        account = ensure_found(await self._account_repo.get_by_id(account_id))
        ensure_owner(account.user_id, self._user_id)
        return account

    async def _ensure_unique_name(self, name: str, account_id: int | None = None) -> None:
        existing = await self._account_repo.get_by_name(self._user_id, name)
        if existing and existing.id != account_id:
            raise ConflictError(DUPLICATE_NAME)

    # --- 1. CREATE / READ ---

    async def create(self, data: AccountRequest) -> AccountResponse:
        if is_missing(data.name):
            raise ValidationError(NAME_REQUIRED)

        async with atomic(self._session):
            await self._ensure_unique_name(data.name)
            try:
                account = await self._account_repo.create({"name": data.name, "user_id": self._user_id})
            except IntegrityError as e:
                raise ConflictError(DUPLICATE_NAME) from e

            logger.info("account_created", account_id=account.id, user_id=self._user_id)
            return AccountResponse.model_validate(account)

    async def list(self) -> list[AccountResponse]:
        async with atomic(self._session):
            accounts = await self._account_repo.get_user_accounts(self._user_id)
            return [AccountResponse.model_validate(account) for account in accounts]

    async def get_by_id(self, account_id: int) -> AccountResponse:
        async with atomic(self._session):
            return AccountResponse.model_validate(await self._get_owned(account_id))

    # --- 2. UPDATE / DELETE ---

    async def update(self, account_id: int, data: AccountRequest) -> AccountResponse:
        """
        Renames an account. Only 'name' is mutable; an account never changes owner.
        """
        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data and is_missing(update_data["name"]):
            raise ValidationError(NAME_REQUIRED)

        async with atomic(self._session):
            account = await self._get_owned(account_id)

            if "name" in update_data:
                await self._ensure_unique_name(update_data["name"], account_id=account.id)
            try:
                account = await self._account_repo.update(account, update_data)
            except IntegrityError as e:
                raise ConflictError(DUPLICATE_NAME) from e

            logger.info("account_updated", account_id=account.id, user_id=self._user_id)
            return AccountResponse.model_validate(account)

    async def delete(self, account_id: int) -> None:
        async with atomic(self._session):
            account = await self._get_owned(account_id)

            if await self._account_repo.has_transactions(account.id):
                logger.warning("account_delete_refused", account_id=account.id, reason="has_transactions")
                raise ConflictError(HAS_TRANSACTIONS)
            try:
                await self._account_repo.delete(account)
            except IntegrityError as e:
                # A transaction was booked concurrently
                raise ConflictError(HAS_TRANSACTIONS) from e

            logger.info("account_deleted", account_id=account_id, user_id=self._user_id)
