from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .definitions import User


class TransactionType(str, PyEnum):
    INFLOW = "I"
    OUTFLOW = "O"


# --- 1. OWNERSHIP ROOT ---


class Account(Base, TimestampMixin):
    """
    The Account Table (T_Account).
    A named bucket of money owned by exactly one user for its whole lifetime.
    Names are unique per owner, not globally.
    """

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("name", "user_id", name="uq_accounts_name_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, comment="Account ID.")
    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Account name, unique for its owner.")
    user_id: Mapped[int] = mapped_column(
        ForeignKey(User.id), nullable=False, index=True, comment="The ID of the user who owns this account."
    )


# --- 2. LEDGER FACTS ---


class Transaction(Base, TimestampMixin):
    """
    The Transaction Table (T_Transaction).
    A single signed entry on one account. The stored amount sign always follows
    the type: inflows are >= 0, outflows are <= 0.

    Ownership is NOT stored here; it is resolved through the account.
    """

    __tablename__ = "transactions"
    __table_args__ = (CheckConstraint("type IN ('I', 'O')", name="ck_transactions_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, comment="Transaction ID.")
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, comment="Signed amount; the sign is normalised from 'type'."
    )
    type: Mapped[TransactionType] = mapped_column(String(1), nullable=False, comment="I = inflow, O = outflow.")

    acc_id: Mapped[int] = mapped_column(
        ForeignKey(Account.id, ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Owning account. An account with transactions cannot be deleted.",
    )
    transfer_id: Mapped[None | int] = mapped_column(
        ForeignKey("transfers.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        comment="Transfer this entry is a leg of, if any.",
    )
    status: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, comment="Settlement flag; transfer legs are posted as settled."
    )

    transfer = relationship("Transfer", back_populates="transactions")


class Transfer(Base, TimestampMixin):
    """
    The Transfer Table (T_Transfer).
    Moves money between two accounts of the same user. Every transfer owns
    exactly two legs in T_Transaction: an outflow on the origin and an inflow
    on the destination, both carrying the transfer's amount.
    """

    __tablename__ = "transfers"
    __table_args__ = (CheckConstraint("acc_ori_id <> acc_dest_id", name="ck_transfers_distinct_accounts"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, comment="Transfer ID.")
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, comment="Unsigned amount moved.")

    user_id: Mapped[int] = mapped_column(ForeignKey(User.id), nullable=False, index=True)
    acc_ori_id: Mapped[int] = mapped_column(ForeignKey(Account.id), nullable=False, comment="Origin account.")
    acc_dest_id: Mapped[int] = mapped_column(ForeignKey(Account.id), nullable=False, comment="Destination account.")

    # Outbound leg first: negative amount, or type O when the amount is zero
    transactions: Mapped[list[Transaction]] = relationship(
        back_populates="transfer",
        order_by=[Transaction.amount, Transaction.type.desc()],
        passive_deletes=True,
    )
