"""
Pydantic schemas defining the contract for user identity and authentication
across the Presentation (API) and Service Layers.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

# --- Input Schemas (Requests / Commands) ---


class UserRequest(BaseModel):
    """
    Schema for user signup requests.

    Every field is Optional so that the UserService can report the first
    missing one with its own message instead of a generic schema error.
    """

    name: str | None = Field(default=None, max_length=100, description="User's display name")
    email: EmailStr | None = Field(default=None, description="User's unique email address")
    password: str | None = Field(default=None, description="User's password (will be hashed)")


class LoginRequest(BaseModel):
    """
    Minimal schema for user authentication/login command.
    """

    email: str = Field(..., description="User's email address")
    password: str = Field(..., description="User's plain text password")


# --- Output Schema (Response / Domain Object) ---


class UserResponse(BaseModel):
    """
    Response schema for user information. Also serves as the identity handed
    to the ledger services. Never carries the password or its hash.
    """

    # Configuration allows mapping from SQLAlchemy ORM objects
    model_config = {"from_attributes": True}

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="User's display name")
    email: str = Field(..., description="User's email address")

    created_at: datetime = Field(..., description="Date and time of user creation")
