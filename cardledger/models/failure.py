"""
Known failure classification.

Routes raise subclasses of ``KnownError`` for failures the service can
explain; the handler registered in ``cardledger.main`` turns them into
``{"error": ..., "kind": ..., "detail": ...}`` JSON with the right status.

Upload failures are not raised: the upload endpoint always answers with an
``UploadReport``.
"""

from enum import Enum
from typing import Any

from fastapi import status
from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    VALIDATION_FAILED = "validation_failed"

    # Resource failures
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"

    # Service failures
    SERVICE_UNAVAILABLE = "service_unavailable"

    # Unknown
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Error body returned by card endpoints."""

    error: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    kind: FailureKind = Field(
        default=FailureKind.UNKNOWN,
        description="Classification of the failure",
    )
    detail: Any = Field(
        default=None,
        description="Additional detail, e.g. field-level validation issues",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: Any = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        return FailureDetail(error=self.message, kind=self.kind, detail=self.detail)


class StoreUnavailableError(KnownError):
    """Raised when an operation needs the store but none is configured."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message="Database not configured",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


class CardNotFoundError(KnownError):
    def __init__(self, card_id: str) -> None:
        self.card_id = card_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card {card_id} not found",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class DuplicateCardError(KnownError):
    """
    Raised when an edit would give a card the same (name, set, condition)
    as another existing card.
    """

    def __init__(self, name: str, set_name: str, condition: str) -> None:
        super().__init__(
            kind=FailureKind.DUPLICATE,
            message=(
                f"Another card already exists for {name!r} ({set_name}, {condition}). "
                "Edit that card's quantity instead."
            ),
            status_code=status.HTTP_409_CONFLICT,
        )


class CardValidationError(KnownError):
    """Raised when edited field values violate the Card contract."""

    def __init__(self, issues: list[dict[str, str]]) -> None:
        super().__init__(
            kind=FailureKind.VALIDATION_FAILED,
            message="; ".join(f"{issue['path']}: {issue['message']}" for issue in issues),
            detail=issues,
            status_code=422,
        )
