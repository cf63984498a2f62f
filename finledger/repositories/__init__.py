from .account import AccountRepository
from .transaction import TransactionRepository
from .transfer import TransferRepository
from .user import UserRepository

__all__ = ["AccountRepository", "TransactionRepository", "TransferRepository", "UserRepository"]
