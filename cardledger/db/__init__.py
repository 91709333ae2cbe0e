from cardledger.db.operations import (
    CARD_UPDATE_FIELDS,
    card_to_row,
    delete_card,
    find_by_identity,
    get_card,
    increment_quantity,
    insert_card,
    list_cards,
    row_to_card,
    select_update_fields,
    to_column_values,
    update_card,
)
from cardledger.db.store import CardStore, create_store, get_store

__all__ = [
    "CARD_UPDATE_FIELDS",
    "CardStore",
    "card_to_row",
    "create_store",
    "delete_card",
    "find_by_identity",
    "get_card",
    "get_store",
    "increment_quantity",
    "insert_card",
    "list_cards",
    "row_to_card",
    "select_update_fields",
    "to_column_values",
    "update_card",
]
