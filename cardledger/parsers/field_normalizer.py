"""
Header alias normalization.

Maps the header spellings people actually use in collection spreadsheets
onto the canonical field names of the CSV row contract.
"""

from collections.abc import Mapping
from typing import Any

# Lower-cased, trimmed header -> canonical field name
FIELD_ALIASES: dict[str, str] = {
    "estimatedvalue": "estimatedValue",
    "estimated_value": "estimatedValue",
    "value": "estimatedValue",
    "qty": "quantity",
    "quantity": "quantity",
    "game": "category",
    "tcg": "category",
    "category": "category",
    "rarity": "category",
}


def canonical_field_name(key: str) -> str:
    """Canonical name for one header; unknown headers come back lower-cased."""
    lowered = key.strip().lower()
    return FIELD_ALIASES.get(lowered, lowered)


def normalize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """
    Rename the keys of one row to canonical field names.

    Values are passed through untouched. No key is dropped: unrecognized
    headers survive in lower-cased form. If two headers map to the same
    canonical name, the later column wins.
    """
    return {canonical_field_name(key): value for key, value in row.items()}
