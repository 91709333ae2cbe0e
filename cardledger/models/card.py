"""
Card data contract.

Single source of truth for what a valid Card and a valid CSV row look like.
Every other component validates through these models (usually via
``cardledger.services.validation``) instead of re-checking fields itself.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any
from uuid import UUID, uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationInfo,
    model_validator,
)
from pydantic_core import PydanticCustomError


class CardCondition(str, Enum):
    """Physical condition grading, ordered best to worst."""

    NM = "NM"  # Near Mint
    LP = "LP"  # Lightly Played
    MP = "MP"  # Moderately Played
    HP = "HP"  # Heavily Played
    DMG = "DMG"  # Damaged


@dataclass(frozen=True)
class CategoryScheme:
    """
    Closed enumeration backing ``Card.category``.

    Which scheme is active is a deployment choice (settings.card_category_scheme);
    only one is ever in effect.
    """

    name: str
    members: tuple[str, ...]
    default: str
    colors: dict[str, str] = field(default_factory=dict)

    def __contains__(self, value: object) -> bool:
        return value in self.members

    def describe(self) -> str:
        """Render members the way enum errors list them: 'A', 'B' or 'C'."""
        quoted = [f"'{member}'" for member in self.members]
        if len(quoted) == 1:
            return quoted[0]
        return ", ".join(quoted[:-1]) + f" or {quoted[-1]}"


TCG_SCHEME = CategoryScheme(
    name="tcg",
    members=("Pokemon", "Magic", "YuGiOh", "Other"),
    default="Other",
    colors={
        "Pokemon": "hsl(48 95% 60%)",
        "Magic": "hsl(280 70% 60%)",
        "YuGiOh": "hsl(260 50% 55%)",
        "Other": "hsl(270 30% 40%)",
    },
)

RARITY_SCHEME = CategoryScheme(
    name="rarity",
    members=("Common", "Uncommon", "Rare", "Mythic", "Secret"),
    default="Common",
    colors={
        "Common": "hsl(270 30% 40%)",
        "Uncommon": "hsl(260 50% 55%)",
        "Rare": "hsl(280 70% 60%)",
        "Mythic": "hsl(290 85% 65%)",
        "Secret": "hsl(300 95% 70%)",
    },
)

CATEGORY_SCHEMES: dict[str, CategoryScheme] = {
    TCG_SCHEME.name: TCG_SCHEME,
    RARITY_SCHEME.name: RARITY_SCHEME,
}


def get_category_scheme(name: str | None = None) -> CategoryScheme:
    """Look up a category scheme by name, defaulting to the configured one."""
    if name is None:
        from cardledger.config import settings

        name = settings.card_category_scheme
    try:
        return CATEGORY_SCHEMES[name]
    except KeyError:
        msg = f"Unknown category scheme: {name!r}"
        raise ValueError(msg) from None


def _scheme_from(info: ValidationInfo) -> CategoryScheme:
    context = info.context or {}
    scheme = context.get("scheme")
    if isinstance(scheme, CategoryScheme):
        return scheme
    return get_category_scheme(scheme)


def _check_category(value: str, info: ValidationInfo) -> str:
    scheme = _scheme_from(info)
    if value not in scheme:
        raise PydanticCustomError(
            "enum",
            "Input should be {expected}",
            {"expected": scheme.describe()},
        )
    return value


# Membership is checked against the scheme in the validation context
CategoryValue = Annotated[str, AfterValidator(_check_category)]

# Largest quantity the card_values INTEGER column holds
MAX_QUANTITY = 2**31 - 1


def _check_not_blank(value: str) -> str:
    if not value.strip():
        raise PydanticCustomError(
            "string_too_short",
            "String should have at least 1 non-blank character",
            {"min_length": 1},
        )
    return value


def _reject_bool_int(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("int_type", "Input should be a valid integer")
    return value


def _reject_bool_number(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("float_type", "Input should be a valid number")
    return value


NonBlankStr = Annotated[str, AfterValidator(_check_not_blank)]
# Numeric strings are accepted, JSON booleans are not
Count = Annotated[int, BeforeValidator(_reject_bool_int)]
Price = Annotated[float, BeforeValidator(_reject_bool_number)]


def utc_now() -> datetime:
    return datetime.now(UTC)


class Card(BaseModel):
    """
    A persisted collection entry: one or more physical copies of a card
    in a given set and condition.

    JSON keys are camelCase (``set``, ``estimatedValue``, ``dateAdded``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: UUID = Field(default_factory=uuid4)
    name: NonBlankStr = Field(..., min_length=1)
    set_name: NonBlankStr = Field(..., alias="set", min_length=1)
    condition: CardCondition
    category: CategoryValue
    estimated_value: Price = Field(..., alias="estimatedValue", ge=0, allow_inf_nan=False)
    quantity: Count = Field(default=1, ge=1, le=MAX_QUANTITY)
    date_added: datetime = Field(default_factory=utc_now, alias="dateAdded")

    @property
    def identity(self) -> tuple[str, str, str]:
        """Duplicate key used by reconciliation: (name, set, condition)."""
        return (self.name, self.set_name, self.condition.value)

    def to_json(self) -> dict[str, Any]:
        """Serialize with public (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


class CsvRow(BaseModel):
    """
    Pre-persistence shape of one uploaded CSV row.

    Numeric fields accept numeric strings. Blank cells count as absent, so
    ``quantity`` falls back to 1 and ``category`` to the scheme default.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: NonBlankStr = Field(..., min_length=1)
    set_name: NonBlankStr = Field(..., alias="set", min_length=1)
    condition: CardCondition
    category: CategoryValue
    estimated_value: Price = Field(..., alias="estimatedValue", ge=0, allow_inf_nan=False)
    quantity: Count = Field(default=1, ge=1, le=MAX_QUANTITY)

    @model_validator(mode="before")
    @classmethod
    def drop_blank_cells(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = {
            key: value
            for key, value in data.items()
            if not (value is None or (isinstance(value, str) and not value.strip()))
        }
        if "category" not in cleaned:
            cleaned["category"] = _scheme_from(info).default
        return cleaned

    def to_card(
        self,
        scheme: CategoryScheme,
        *,
        card_id: UUID | None = None,
        date_added: datetime | None = None,
    ) -> Card:
        """Materialize a Card with a fresh id and timestamp."""
        return Card.model_validate(
            {
                "id": card_id or uuid4(),
                "name": self.name,
                "set_name": self.set_name,
                "condition": self.condition,
                "category": self.category,
                "estimated_value": self.estimated_value,
                "quantity": self.quantity,
                "date_added": date_added or utc_now(),
            },
            context={"scheme": scheme},
        )
