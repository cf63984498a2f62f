"""
Pydantic schemas for account commands and responses.
"""

from pydantic import BaseModel, Field

# --- Input Schemas (Requests / Commands) ---


class AccountRequest(BaseModel):
    """
    Schema for account creation and rename. 'name' is optional at the schema
    level so that the service can answer a missing name with its own message.
    """

    name: str | None = Field(default=None, max_length=100, description="Account name, unique for the owner")


# --- Output Schema ---


class AccountResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int = Field(..., description="Account ID")
    name: str = Field(..., description="Account name")
    user_id: int = Field(..., description="Owner user ID")
