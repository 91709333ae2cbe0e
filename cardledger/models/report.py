"""
Upload report shapes.

``UploadReport`` is the public JSON body of the upload endpoint. It only
carries validation-derived data; persistence outcomes stay internal
(see ``cardledger.services.ingestion.IngestionOutcome``).
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cardledger.models.card import Card


@dataclass(frozen=True)
class ValidationIssue:
    """One violated rule on one field."""

    path: str
    message: str
    rule: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class RowError(BaseModel):
    """A row-indexed error as shown to the user."""

    row: int = Field(..., description="File row number (header is row 1), 0 if not row-specific")
    message: str


class UploadReport(BaseModel):
    """Result of ingesting one uploaded CSV file."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    cards: list[Card] | None = None
    errors: list[RowError] | None = None
    total_processed: int = Field(default=0, alias="totalProcessed")
    total_errors: int = Field(default=0, alias="totalErrors")

    @classmethod
    def failed(cls, errors: list[RowError]) -> "UploadReport":
        """Report for a file rejected before any row was validated."""
        return cls(
            success=False,
            errors=errors,
            total_processed=0,
            total_errors=len(errors),
        )

    @classmethod
    def no_file(cls) -> "UploadReport":
        return cls.failed([RowError(row=0, message="No file provided")])

    @classmethod
    def internal_error(cls) -> "UploadReport":
        return cls.failed([RowError(row=0, message="Internal server error")])

    def to_json(self) -> dict[str, Any]:
        """Serialize with public keys, omitting absent ``cards``/``errors``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
