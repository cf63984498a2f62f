from .base import Base
from .definitions import User
from .ledger import Account, Transaction, TransactionType, Transfer

__all__ = ["Base", "User", "Account", "Transaction", "TransactionType", "Transfer"]
