"""
CSV ingestion pipeline.

parse -> normalize -> validate -> reconcile, for one uploaded file.

The unit of success is the row: a bad row is reported and skipped, the
rest of the file still goes through. Structural CSV problems are the
exception and reject the whole file before any row is validated.

Storage is best-effort. The report tells the uploader which rows were
well-formed; whether they were saved is kept in ``IngestionOutcome``
and only logged.
"""

import logging
from dataclasses import dataclass

from cardledger.models.card import Card, CategoryScheme, get_category_scheme, utc_now
from cardledger.models.report import RowError, UploadReport
from cardledger.parsers.csv_rows import parse_csv_rows
from cardledger.parsers.field_normalizer import normalize_row
from cardledger.services.reconciliation import CardReconciler, ReconciliationResult
from cardledger.services.validation import format_issues, validate_csv_row

logger = logging.getLogger(__name__)


@dataclass
class IngestionOutcome:
    """
    Everything that happened during one ingestion.

    ``report`` is validation-derived and safe to show the uploader.
    ``persistence`` is None when nothing was handed to the store (no valid
    cards, no store configured, or the reconciler itself blew up).
    """

    report: UploadReport
    persistence: ReconciliationResult | None = None


def decode_upload(content: str | bytes) -> str:
    """
    Decode uploaded bytes as UTF-8, tolerating a byte-order mark.

    Raises UnicodeDecodeError for anything that is not UTF-8 text.
    """
    if isinstance(content, str):
        return content
    return content.decode("utf-8-sig")


class IngestionPipeline:
    """Turns one uploaded CSV file into validated cards and a report."""

    def __init__(
        self,
        scheme: CategoryScheme | None = None,
        reconciler: CardReconciler | None = None,
    ):
        self.scheme = scheme or get_category_scheme()
        self.reconciler = reconciler

    def validate(self, text: str) -> UploadReport:
        """
        Parse and validate CSV text without touching the store.

        Rows are handled in file order and ``cards`` keeps that order.
        """
        parsed = parse_csv_rows(text)
        if not parsed.ok:
            logger.info("Rejected upload with %d structural CSV errors", len(parsed.errors))
            return UploadReport.failed(
                [RowError(row=error.row, message=error.message) for error in parsed.errors]
            )

        ingested_at = utc_now()
        cards: list[Card] = []
        errors: list[RowError] = []

        for row in parsed.rows:
            result = validate_csv_row(normalize_row(row.fields), self.scheme)
            if isinstance(result, list):
                errors.append(RowError(row=row.row_number, message=format_issues(result)))
            else:
                cards.append(result.to_card(self.scheme, date_added=ingested_at))

        return UploadReport(
            success=not errors,
            cards=cards,
            errors=errors or None,
            total_processed=len(cards),
            total_errors=len(errors),
        )

    async def ingest(self, content: str | bytes) -> IngestionOutcome:
        """
        Run the full pipeline on an uploaded file.

        Never raises for bad input or store trouble; both end up in the
        returned outcome.
        """
        try:
            text = decode_upload(content)
        except UnicodeDecodeError:
            return IngestionOutcome(
                report=UploadReport.failed([RowError(row=0, message="File is not valid UTF-8 text")])
            )

        report = self.validate(text)
        outcome = IngestionOutcome(report=report)

        if report.cards and self.reconciler is not None:
            outcome.persistence = await self._persist(self.reconciler, report.cards)

        logger.info(
            "Ingested upload: %d cards validated, %d rows rejected",
            report.total_processed,
            report.total_errors,
        )
        return outcome

    async def _persist(
        self, reconciler: CardReconciler, cards: list[Card]
    ) -> ReconciliationResult | None:
        try:
            return await reconciler.reconcile(cards)
        except Exception:
            # Validation results stand even when the store is unusable
            logger.exception("Reconciliation failed for a batch of %d cards", len(cards))
            return None
