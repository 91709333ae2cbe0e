from datetime import UTC, date, datetime

from cardledger.models.card import RARITY_SCHEME, TCG_SCHEME, Card
from cardledger.services.collection_stats import (
    FALLBACK_CATEGORY_COLOR,
    category_distribution,
    compute_stats,
    value_history,
)


def make_card(
    name: str, category: str, value: float, quantity: int, added: datetime
) -> Card:
    return Card.model_construct(
        name=name,
        set_name="Set",
        condition="NM",
        category=category,
        estimated_value=value,
        quantity=quantity,
        date_added=added,
    )


DAY1 = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
DAY2 = datetime(2024, 1, 2, 18, 30, tzinfo=UTC)

CARDS = [
    make_card("Black Lotus", "Magic", 50000, 1, DAY1),
    make_card("Charizard", "Pokemon", 400, 2, DAY1),
    make_card("Pikachu", "Pokemon", 15.5, 4, DAY2),
]


class TestComputeStats:
    def test_totals(self) -> None:
        stats = compute_stats(CARDS, TCG_SCHEME)

        assert stats.total_value == 50000 + 800 + 62
        assert stats.total_cards == 7
        assert stats.unique_cards == 3

    def test_empty_collection(self) -> None:
        stats = compute_stats([], TCG_SCHEME)

        assert stats.total_value == 0
        assert stats.category_distribution == []
        assert stats.value_history == []

    def test_json_keys(self) -> None:
        data = compute_stats(CARDS, TCG_SCHEME).model_dump(mode="json", by_alias=True)

        assert set(data) == {
            "totalValue",
            "totalCards",
            "uniqueCards",
            "categoryDistribution",
            "valueHistory",
        }
        assert data["valueHistory"][0]["date"] == "2024-01-01"


class TestCategoryDistribution:
    def test_counts_copies_in_scheme_order(self) -> None:
        slices = category_distribution(CARDS, TCG_SCHEME)

        assert [(s.category, s.count) for s in slices] == [("Pokemon", 6), ("Magic", 1)]
        assert slices[0].color == TCG_SCHEME.colors["Pokemon"]

    def test_unknown_categories_listed_last(self) -> None:
        slices = category_distribution(CARDS, RARITY_SCHEME)

        assert [s.category for s in slices] == ["Magic", "Pokemon"]
        assert all(s.color == FALLBACK_CATEGORY_COLOR for s in slices)


class TestValueHistory:
    def test_cumulative_per_day(self) -> None:
        history = value_history(CARDS)

        assert [(p.date, p.value) for p in history] == [
            (date(2024, 1, 1), 50800.0),
            (date(2024, 1, 2), 50862.0),
        ]

    def test_sorted_oldest_first(self) -> None:
        history = value_history(list(reversed(CARDS)))

        assert [p.date for p in history] == [date(2024, 1, 1), date(2024, 1, 2)]
