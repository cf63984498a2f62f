from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

# --- CORE IDENTITY ENTITY ---


class User(Base, TimestampMixin):
    """
    The User Definition Table (T_User).
    The identity every account and transfer is owned by.

    Email is the unique login identifier; 'name' is a display name only.
    The clear password is never stored, only its bcrypt hash.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, comment="Unique User ID.")

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="User's display name.")

    email: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        index=True,
        comment="User's unique email address, used as the login identifier.",
    )

    password_hash: Mapped[str] = mapped_column(
        String(128), nullable=False, comment="Secured hash of the user's password."
    )
