from cardledger.models.card import (
    CATEGORY_SCHEMES,
    RARITY_SCHEME,
    TCG_SCHEME,
    Card,
    CardCondition,
    CategoryScheme,
    CsvRow,
    get_category_scheme,
)
from cardledger.models.failure import (
    CardNotFoundError,
    CardValidationError,
    DuplicateCardError,
    FailureDetail,
    FailureKind,
    KnownError,
    StoreUnavailableError,
)
from cardledger.models.report import RowError, UploadReport, ValidationIssue

__all__ = [
    "CATEGORY_SCHEMES",
    "RARITY_SCHEME",
    "TCG_SCHEME",
    "Card",
    "CardCondition",
    "CardNotFoundError",
    "CardValidationError",
    "CategoryScheme",
    "CsvRow",
    "DuplicateCardError",
    "FailureDetail",
    "FailureKind",
    "KnownError",
    "RowError",
    "StoreUnavailableError",
    "UploadReport",
    "ValidationIssue",
    "get_category_scheme",
]
