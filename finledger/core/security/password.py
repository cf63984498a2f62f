import bcrypt
import structlog

from finledger.config import get_settings

logger = structlog.get_logger(__name__)


def hash_password(password: str, rounds: int | None = None) -> str:
    """
    Hash a password using bcrypt.

    bcrypt only looks at the first 72 bytes, so longer inputs are truncated.
    """
    rounds = rounds or get_settings().BCRYPT_ROUNDS
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def check_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a clear password against its stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
    except ValueError as e:
        # Malformed stored hash
        logger.warning("password_check_failed", error=str(e))
        return False
