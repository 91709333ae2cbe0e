"""
Database CRUD operations.

Provides async functions for reading, merging, inserting, updating, and
deleting card records, plus the translation between store rows and the
Card contract. Functions take an AsyncSession and never commit; the caller
owns the transaction (see ``CardStore.session``).
"""

from collections.abc import Mapping
from datetime import UTC
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.models.card import Card, CardCondition
from cardledger.models.db import CardValueDB

# Public Card field -> store column. The only fields a partial update may touch.
CARD_UPDATE_FIELDS: dict[str, str] = {
    "name": "name",
    "set": "set_name",
    "condition": "condition",
    "category": "category",
    "estimatedValue": "price",
    "quantity": "quantity",
}


# --- Row mapping ---


def card_to_row(card: Card) -> CardValueDB:
    """Build a new store row from a validated Card."""
    return CardValueDB(
        id=str(card.id),
        name=card.name,
        set_name=card.set_name,
        condition=card.condition.value,
        category=card.category,
        price=card.estimated_value,
        quantity=card.quantity,
        date_added=card.date_added,
    )


def row_to_card(row: CardValueDB, default_category: str = "Other") -> Card:
    """
    Convert a store row to a Card.

    Rows were validated on the way in, so this does not re-validate; a
    category from a previously active scheme is passed through as-is.
    """
    date_added = row.date_added or row.created_at
    if date_added is not None and date_added.tzinfo is None:
        date_added = date_added.replace(tzinfo=UTC)
    return Card.model_construct(
        id=UUID(row.id),
        name=row.name,
        set_name=row.set_name,
        condition=CardCondition(row.condition),
        category=row.category or default_category,
        estimated_value=float(row.price),
        quantity=row.quantity,
        date_added=date_added,
    )


def select_update_fields(patch: Mapping[str, Any]) -> dict[str, Any]:
    """
    Keep only whitelisted, non-null Card fields from a partial update.

    Unknown keys are dropped here so they can never reach the store.
    """
    return {
        field: patch[field]
        for field in CARD_UPDATE_FIELDS
        if field in patch and patch[field] is not None
    }


def to_column_values(card: Card, fields: list[str]) -> dict[str, Any]:
    """Column values for the given public fields, taken from a validated Card."""
    row = card_to_row(card)
    return {CARD_UPDATE_FIELDS[field]: getattr(row, CARD_UPDATE_FIELDS[field]) for field in fields}


# --- Card Operations ---


async def list_cards(session: AsyncSession) -> list[CardValueDB]:
    """All card rows, newest first (by date added, falling back to creation time)."""
    result = await session.execute(
        select(CardValueDB).order_by(
            func.coalesce(CardValueDB.date_added, CardValueDB.created_at).desc()
        )
    )
    return list(result.scalars().all())


async def get_card(session: AsyncSession, card_id: str) -> CardValueDB | None:
    """
    Get a card row by id.

    Returns None if no such card exists.
    """
    result = await session.execute(select(CardValueDB).where(CardValueDB.id == card_id))
    return result.scalar_one_or_none()


async def find_by_identity(
    session: AsyncSession, name: str, set_name: str, condition: str
) -> CardValueDB | None:
    """Get the row holding a (name, set, condition) triple, if any."""
    result = await session.execute(
        select(CardValueDB).where(
            CardValueDB.name == name,
            CardValueDB.set_name == set_name,
            CardValueDB.condition == condition,
        )
    )
    return result.scalar_one_or_none()


async def increment_quantity(
    session: AsyncSession, name: str, set_name: str, condition: str, amount: int
) -> str | None:
    """
    Add ``amount`` to the quantity of the row matching the triple.

    Runs as a single UPDATE so concurrent merges cannot lose increments.
    Only ``quantity`` changes. Returns the merged row's id, or None if no
    row matched.
    """
    result = await session.execute(
        update(CardValueDB)
        .where(
            CardValueDB.name == name,
            CardValueDB.set_name == set_name,
            CardValueDB.condition == condition,
        )
        .values(quantity=CardValueDB.quantity + amount)
        .returning(CardValueDB.id)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none()


async def insert_card(session: AsyncSession, card: Card) -> CardValueDB:
    """
    Insert a new card row.

    Raises IntegrityError if the (name, set, condition) triple already exists.
    """
    row = card_to_row(card)
    session.add(row)
    await session.flush()
    return row


async def update_card(
    session: AsyncSession, card_id: str, values: Mapping[str, Any]
) -> CardValueDB | None:
    """
    Apply column values to one card row.

    ``values`` must be keyed by store column and come from
    ``to_column_values``. Returns None if the card does not exist.
    """
    row = await get_card(session, card_id)
    if row is None:
        return None

    for column, value in values.items():
        setattr(row, column, value)
    await session.flush()
    return row


async def delete_card(session: AsyncSession, card_id: str) -> bool:
    """
    Delete a card row.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(delete(CardValueDB).where(CardValueDB.id == card_id))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount) > 0  # type: ignore[attr-defined]
