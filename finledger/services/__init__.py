from .account import AccountService
from .transaction import TransactionService
from .transfer import TransferService
from .user import UserService

__all__ = ["AccountService", "TransactionService", "TransferService", "UserService"]
