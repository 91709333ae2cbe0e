"""
Collection statistics for the dashboard charts.

Aggregates a list of Cards into totals, a per-category copy count and a
cumulative value-over-time series.
"""

import datetime as dt
from collections import defaultdict
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from cardledger.models.card import Card, CategoryScheme

# Color for categories outside the active scheme (e.g. rows from an older scheme)
FALLBACK_CATEGORY_COLOR = "hsl(270 10% 50%)"


class CategorySlice(BaseModel):
    category: str
    count: int
    color: str


class ValuePoint(BaseModel):
    date: dt.date
    value: float


class CollectionStats(BaseModel):
    """Response model for collection statistics."""

    model_config = ConfigDict(populate_by_name=True)

    total_value: float = Field(default=0.0, alias="totalValue")
    total_cards: int = Field(default=0, alias="totalCards")
    unique_cards: int = Field(default=0, alias="uniqueCards")
    category_distribution: list[CategorySlice] = Field(
        default_factory=list,
        alias="categoryDistribution",
        description="Copies per category, scheme order, zero counts omitted",
    )
    value_history: list[ValuePoint] = Field(
        default_factory=list,
        alias="valueHistory",
        description="Cumulative collection value per day cards were added, oldest first",
    )


def card_value(card: Card) -> float:
    """Value of all copies a card record represents."""
    return card.estimated_value * card.quantity


def category_distribution(cards: Sequence[Card], scheme: CategoryScheme) -> list[CategorySlice]:
    """
    Count copies per category.

    Scheme members come first in scheme order; categories the scheme does
    not know follow alphabetically.
    """
    counts: dict[str, int] = defaultdict(int)
    for card in cards:
        counts[card.category] += card.quantity

    ordered = [member for member in scheme.members if counts.get(member)]
    ordered += sorted(category for category in counts if category not in scheme)

    return [
        CategorySlice(
            category=category,
            count=counts[category],
            color=scheme.colors.get(category, FALLBACK_CATEGORY_COLOR),
        )
        for category in ordered
        if counts[category] > 0
    ]


def value_history(cards: Sequence[Card]) -> list[ValuePoint]:
    """Running total of collection value, one point per day with additions."""
    added_per_day: dict[dt.date, float] = defaultdict(float)
    for card in cards:
        added_per_day[card.date_added.date()] += card_value(card)

    history = []
    running = 0.0
    for day in sorted(added_per_day):
        running += added_per_day[day]
        history.append(ValuePoint(date=day, value=round(running, 2)))
    return history


def compute_stats(cards: Sequence[Card], scheme: CategoryScheme) -> CollectionStats:
    """Aggregate cards into dashboard statistics."""
    return CollectionStats(
        total_value=round(sum(card_value(card) for card in cards), 2),
        total_cards=sum(card.quantity for card in cards),
        unique_cards=len(cards),
        category_distribution=category_distribution(cards, scheme),
        value_history=value_history(cards),
    )
