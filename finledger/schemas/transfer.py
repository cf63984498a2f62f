"""
Pydantic schemas for transfers between two accounts of the same user.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from .common import AmountStr
from .transaction import TransactionResponse

# --- Input Schemas (Requests / Commands) ---


class TransferRequest(BaseModel):
    """
    Schema for transfer creation and update.

    On update only the fields actually sent are merged onto the stored
    transfer; a field sent as null counts as missing. The owner is always the
    calling user, never a payload field.
    """

    description: str | None = Field(default=None, max_length=255)
    date: datetime | None = None
    amount: Decimal | None = Field(default=None, description="Amount moved; the sign is ignored")
    acc_ori_id: int | None = Field(default=None, description="Origin account (debited)")
    acc_dest_id: int | None = Field(default=None, description="Destination account (credited)")


# --- Output Schema ---


class TransferResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int = Field(..., description="Transfer ID")
    description: str
    date: datetime
    amount: AmountStr = Field(..., description="Unsigned amount with two decimals")
    user_id: int
    acc_ori_id: int
    acc_dest_id: int

    # Outbound leg first
    transactions: list[TransactionResponse] = Field(default_factory=list, description="The two posted legs")
