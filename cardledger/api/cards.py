"""
Card API endpoints.

List, edit and delete persisted cards, plus dashboard statistics.
"""

import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cardledger.db.operations import (
    delete_card,
    get_card,
    list_cards,
    row_to_card,
    select_update_fields,
    to_column_values,
    update_card,
)
from cardledger.db.store import CardStore, get_store
from cardledger.models.card import Card, get_category_scheme
from cardledger.models.failure import (
    CardNotFoundError,
    CardValidationError,
    DuplicateCardError,
    FailureDetail,
    FailureKind,
    KnownError,
    StoreUnavailableError,
)
from cardledger.services.collection_stats import CollectionStats, compute_stats
from cardledger.services.validation import validate_card

logger = logging.getLogger(__name__)

# Where listed cards came from. "supabase" is the wire value the dashboard
# uses for "read from the store".
CardSource = Literal["supabase", "empty", "none", "error"]

router = APIRouter(prefix="/api", tags=["cards"])


class CardListResponse(BaseModel):
    """Response model for the card list."""

    cards: list[Card] = Field(default_factory=list)
    source: CardSource
    error: str | None = None


class CardUpdateResponse(BaseModel):
    success: bool = True
    card: Card


class DeleteResponse(BaseModel):
    success: bool = True


def require_store(
    store: Annotated[CardStore | None, Depends(get_store)],
) -> CardStore:
    """Dependency for endpoints that cannot work without a store."""
    if store is None:
        raise StoreUnavailableError()
    return store


async def _load_cards(store: CardStore) -> list[Card]:
    default_category = get_category_scheme().default
    async with store.session() as session:
        rows = await list_cards(session)
        return [row_to_card(row, default_category) for row in rows]


@router.get("/cards", response_model=CardListResponse)
async def list_collection(
    store: Annotated[CardStore | None, Depends(get_store)],
) -> JSONResponse:
    """
    List all persisted cards, newest first.

    Never fails: without a store, or when the store errors, an empty list
    is returned and ``source`` says why.
    """
    if store is None:
        return JSONResponse(content={"cards": [], "source": "none"})

    try:
        cards = await _load_cards(store)
    except (SQLAlchemyError, OSError) as e:
        logger.error("Failed to fetch cards: %s", e)
        return JSONResponse(content={"cards": [], "source": "error", "error": str(e)})

    source: CardSource = "supabase" if cards else "empty"
    return JSONResponse(content={"cards": [card.to_json() for card in cards], "source": source})


@router.get("/cards/stats", response_model=CollectionStats)
async def collection_stats(
    store: Annotated[CardStore | None, Depends(get_store)],
) -> JSONResponse:
    """
    Totals, category breakdown and value history for the dashboard.

    Returns empty statistics when no store is configured.
    """
    scheme = get_category_scheme()
    if store is None:
        cards: list[Card] = []
    else:
        try:
            cards = await _load_cards(store)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to fetch cards for stats: %s", e)
            raise KnownError(
                kind=FailureKind.SERVICE_UNAVAILABLE,
                message="Card store unavailable",
                status_code=503,
            ) from e

    stats = compute_stats(cards, scheme)
    return JSONResponse(content=stats.model_dump(mode="json", by_alias=True))


@router.patch(
    "/cards/{card_id}",
    response_model=CardUpdateResponse,
    responses={
        400: {"model": FailureDetail},
        404: {"model": FailureDetail},
        409: {"model": FailureDetail},
        422: {"model": FailureDetail},
        503: {"model": FailureDetail},
    },
)
async def update_card_fields(
    card_id: str,
    body: Annotated[dict[str, Any], Body()],
    store: Annotated[CardStore, Depends(require_store)],
) -> JSONResponse:
    """
    Partially update a card.

    Only name, set, condition, category, estimatedValue and quantity can be
    changed; other keys are ignored. The edited card must still satisfy the
    Card contract.
    """
    patch = select_update_fields(body)
    if not patch:
        raise KnownError(kind=FailureKind.INVALID_INPUT, message="No valid fields to update")

    scheme = get_category_scheme()
    async with store.session() as session:
        row = await get_card(session, card_id)
        if row is None:
            raise CardNotFoundError(card_id)

        current = row_to_card(row, scheme.default).to_json()
        result = validate_card({**current, **patch}, scheme)
        if isinstance(result, list):
            raise CardValidationError(
                [{"path": issue.path, "message": issue.message} for issue in result]
            )

        try:
            updated = await update_card(session, card_id, to_column_values(result, list(patch)))
        except IntegrityError as e:
            raise DuplicateCardError(*result.identity) from e

        if updated is None:
            raise CardNotFoundError(card_id)
        card = row_to_card(updated, scheme.default)

    logger.info("Updated card %s fields: %s", card_id, ", ".join(sorted(patch)))
    return JSONResponse(content={"success": True, "card": card.to_json()})


@router.delete(
    "/cards/{card_id}",
    response_model=DeleteResponse,
    responses={503: {"model": FailureDetail}},
)
async def delete_collection_card(
    card_id: str,
    store: Annotated[CardStore, Depends(require_store)],
) -> DeleteResponse:
    """
    Delete a card.

    Idempotent: deleting an unknown id also succeeds.
    """
    async with store.session() as session:
        deleted = await delete_card(session, card_id)

    if deleted:
        logger.info("Deleted card %s", card_id)
    return DeleteResponse(success=True)
