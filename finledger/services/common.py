"""
Validation and ownership helpers shared by the ledger services.
"""

from typing import Any, TypeVar

from finledger.exceptions.http import ForbiddenError, NotFoundError, ValidationError

RESOURCE_FORBIDDEN = "Este recurso não pertence ao usuário"
RESOURCE_NOT_FOUND = "Recurso não encontrado"

T = TypeVar("T")


def required(label: str) -> str:
    return f"{label} é um atributo obrigatório"


def is_missing(value: Any) -> bool:
    """None or a blank string. Zero is a value."""
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(data: dict[str, Any], messages: dict[str, str]) -> None:
    """
    Checks the fields in declaration order and fails on the first missing one.

    Args:
        data: The (merged) payload.
        messages: field name -> message raised when that field is missing.

    Raises:
        ValidationError: With the message of the first missing field.
    """
    for field, message in messages.items():
        if is_missing(data.get(field)):
            raise ValidationError(message)


def ensure_found(entity: T | None) -> T:
    if entity is None:
        raise NotFoundError(RESOURCE_NOT_FOUND)
    return entity


def ensure_owner(owner_id: int | None, user_id: int, message: str = RESOURCE_FORBIDDEN) -> None:
    """Raises ForbiddenError unless the resource's owner is the acting user."""
    if owner_id != user_id:
        raise ForbiddenError(message)
