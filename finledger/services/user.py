import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finledger.core.security.password import check_password, hash_password
from finledger.db.utils import atomic
from finledger.exceptions.http import ConflictError, ValidationError
from finledger.repositories import UserRepository
from finledger.schemas import LoginRequest, UserRequest, UserResponse

from .common import ensure_found, require_fields, required

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS = {
    "name": required("Nome"),
    "email": required("Email"),
    "password": "Senha é um atributo obrigatório",
}
DUPLICATE_EMAIL = "Já existe um usuário com esse email"
INVALID_CREDENTIALS = "Usuário ou senha inválido"


class UserService:
    def __init__(self, session: AsyncSession, user_repo: UserRepository | None = None):
        self._session = session
        self._user_repo = user_repo or UserRepository(session)

    # --- 1. USER REGISTRATION (Atomic Operation) ---

    async def create(self, data: UserRequest) -> UserResponse:
        """
        Registers a new user. The password is stored as a bcrypt hash and never
        returned.
        """
        require_fields(data.model_dump(), REQUIRED_FIELDS)

        hashed_password = hash_password(data.password)

        # --- START ATOMIC TRANSACTION ---
        async with atomic(self._session):

            if await self._user_repo.get_by_email(data.email):
                raise ConflictError(DUPLICATE_EMAIL)

            try:
                created_user = await self._user_repo.create(
                    {"name": data.name, "email": data.email, "password_hash": hashed_password}
                )
            except IntegrityError as e:
                # Same email registered concurrently
                raise ConflictError(DUPLICATE_EMAIL) from e

            logger.info("user_created", user_id=created_user.id)

            # --- END ATOMIC TRANSACTION ---
            return UserResponse.model_validate(created_user)

    # --- 2. USER AUTHENTICATION ---

    async def authenticate(self, credentials: LoginRequest) -> UserResponse:
        """
        Checks an email/password pair. Unknown email and wrong password fail
        with the same message.
        """
        async with atomic(self._session):
            user_orm = await self._user_repo.get_by_email(credentials.email)

            if not user_orm or not check_password(credentials.password, user_orm.password_hash):
                logger.warning("authentication_failed")
                raise ValidationError(INVALID_CREDENTIALS)

            return UserResponse.model_validate(user_orm)

    # --- 3. LOOKUPS ---

    async def get_by_id(self, user_id: int) -> UserResponse:
        async with atomic(self._session):
            return UserResponse.model_validate(ensure_found(await self._user_repo.get_by_id(user_id)))

    async def list(self) -> list[UserResponse]:
        async with atomic(self._session):
            return [UserResponse.model_validate(user) for user in await self._user_repo.get_all()]
