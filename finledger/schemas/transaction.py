"""
Pydantic schemas for single-account ledger entries.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from finledger.models.ledger import TransactionType

from .common import AmountStr

# --- Input Schemas (Requests / Commands) ---


class TransactionRequest(BaseModel):
    """
    Schema for transaction creation.

    Required fields are Optional here on purpose: the Service Layer reports the
    first missing one with a field-specific message. 'type' stays a plain string
    so an unknown value reaches the service and is rejected there.
    The sign of 'amount' is ignored; only its magnitude is kept.
    """

    description: str | None = Field(default=None, max_length=255, description="Free text description")
    date: datetime | None = Field(default=None, description="When the entry happened")
    amount: Decimal | None = Field(default=None, description="Amount; sign is normalised from 'type'")
    type: str | None = Field(default=None, description="'I' for inflow, 'O' for outflow")
    acc_id: int | None = Field(default=None, description="Account the entry is booked on")
    transfer_id: int | None = Field(default=None, description="Originating transfer, for transfer legs")
    status: bool = Field(default=False, description="Settlement flag")


class TransactionUpdateRequest(BaseModel):
    """
    Schema for updating an entry. Only the fields that are set are applied;
    changing amount or type re-normalises the stored sign.
    """

    description: str | None = Field(default=None, max_length=255)
    date: datetime | None = None
    amount: Decimal | None = None
    type: str | None = None
    status: bool | None = None


# --- Output Schema ---


class TransactionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int = Field(..., description="Transaction ID")
    description: str
    date: datetime
    amount: AmountStr = Field(..., description="Signed amount with two decimals")
    type: TransactionType
    acc_id: int
    transfer_id: int | None = None
    status: bool
