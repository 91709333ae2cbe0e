"""
Reconciliation of validated cards into the store.

Each incoming Card is merged into the row sharing its (name, set, condition)
triple by adding quantities, or inserted as a new row when none exists.
Cards are applied one at a time, each in its own transaction, so a failing
card never takes the rest of the batch down with it. Failures are collected
for diagnostics only; they never change what the uploader is told.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cardledger.db.operations import increment_quantity, insert_card
from cardledger.db.store import CardStore
from cardledger.models.card import Card

logger = logging.getLogger(__name__)


class MergeOutcome(str, Enum):
    INSERTED = "inserted"
    MERGED = "merged"


@dataclass(frozen=True)
class AppliedCard:
    card_id: UUID
    row_id: str
    """Id of the store row the card ended up in (differs from card_id on merge)."""

    outcome: MergeOutcome


@dataclass(frozen=True)
class PersistenceFailure:
    card_id: UUID
    identity: tuple[str, str, str]
    error: str


@dataclass
class ReconciliationResult:
    """Per-card outcome of applying one batch to the store."""

    applied: list[AppliedCard] = field(default_factory=list)
    failures: list[PersistenceFailure] = field(default_factory=list)

    @property
    def inserted(self) -> list[AppliedCard]:
        return [a for a in self.applied if a.outcome is MergeOutcome.INSERTED]

    @property
    def merged(self) -> list[AppliedCard]:
        return [a for a in self.applied if a.outcome is MergeOutcome.MERGED]

    @property
    def persisted_ids(self) -> set[UUID]:
        return {a.card_id for a in self.applied}


class MergeTargetVanishedError(Exception):
    """The row that beat our insert was gone before we could merge into it."""


class CardReconciler:
    """Applies validated cards to a CardStore with merge-on-duplicate semantics."""

    def __init__(self, store: CardStore):
        self.store = store

    async def reconcile(self, cards: Sequence[Card]) -> ReconciliationResult:
        """
        Apply a batch of cards, strictly in order.

        Never raises for store failures; they are logged and returned in
        ``ReconciliationResult.failures``. Failed cards are not retried.
        """
        result = ReconciliationResult()

        for card in cards:
            try:
                result.applied.append(await self.apply(card))
            except (SQLAlchemyError, OSError, MergeTargetVanishedError) as e:
                logger.warning(
                    "Failed to persist card %s (%s / %s / %s): %s",
                    card.id,
                    *card.identity,
                    e,
                )
                result.failures.append(
                    PersistenceFailure(card_id=card.id, identity=card.identity, error=str(e))
                )
            except Exception as e:
                logger.exception("Unexpected error persisting card %s", card.id)
                result.failures.append(
                    PersistenceFailure(card_id=card.id, identity=card.identity, error=str(e))
                )

        logger.info(
            "Reconciled %d cards: %d inserted, %d merged, %d failed",
            len(cards),
            len(result.inserted),
            len(result.merged),
            len(result.failures),
        )
        return result

    async def apply(self, card: Card) -> AppliedCard:
        """
        Merge one card into its matching row, or insert it.

        The merge is a single atomic increment. If the insert loses a race
        against a concurrent upload of the same card, the quantity is added
        to the row that won instead.
        """
        name, set_name, condition = card.identity

        try:
            async with self.store.session() as session:
                row_id = await increment_quantity(session, name, set_name, condition, card.quantity)
                if row_id is not None:
                    applied = AppliedCard(card.id, row_id, MergeOutcome.MERGED)
                else:
                    row = await insert_card(session, card)
                    applied = AppliedCard(card.id, row.id, MergeOutcome.INSERTED)
            return applied
        except IntegrityError:
            logger.info("Concurrent insert for %s / %s / %s, merging instead", *card.identity)

        async with self.store.session() as session:
            row_id = await increment_quantity(session, name, set_name, condition, card.quantity)
        if row_id is None:
            msg = f"Row for {card.identity} disappeared during merge"
            raise MergeTargetVanishedError(msg)
        return AppliedCard(card.id, row_id, MergeOutcome.MERGED)
