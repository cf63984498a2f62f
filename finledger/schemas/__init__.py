from .account import AccountRequest, AccountResponse
from .transaction import TransactionRequest, TransactionResponse, TransactionUpdateRequest
from .transfer import TransferRequest, TransferResponse
from .user import LoginRequest, UserRequest, UserResponse

__all__ = [
    "AccountRequest",
    "AccountResponse",
    "LoginRequest",
    "TransactionRequest",
    "TransactionResponse",
    "TransactionUpdateRequest",
    "TransferRequest",
    "TransferResponse",
    "UserRequest",
    "UserResponse",
]
