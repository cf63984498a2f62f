from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

# Never copied from request payloads onto ORM rows
PROTECTED_ATTRS = frozenset({"id", "created_at", "updated_at"})

T = TypeVar("T")


def apply_dict_updates(entity: T, update_data: dict[str, Any], excluded_attrs: set[str] | None = None) -> T:
    """
    Dynamically applies key-value pairs from a dictionary to an ORM entity.

    Args:
        entity: The SQLAlchemy ORM object (loaded or freshly constructed).
        update_data: Dictionary of fields and values to update.
        excluded_attrs: Attribute names to skip in addition to PROTECTED_ATTRS.

    Returns:
        The same entity, for chaining.
    """
    skipped = PROTECTED_ATTRS | (excluded_attrs or set())
    for key, value in update_data.items():

        if key in skipped:
            continue

        if hasattr(entity, key):
            setattr(entity, key, value)

    return entity


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Runs the enclosed block as ONE atomic unit on the given session.

    - Idle session: opens a transaction, commits on success and rolls back on
      any exception (cancellation included).
    - Session already inside a transaction: wraps the block in a SAVEPOINT so a
      failure undoes only this block; the outer owner decides about the commit.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session
