from cardledger.services.collection_stats import CollectionStats, compute_stats
from cardledger.services.ingestion import IngestionOutcome, IngestionPipeline
from cardledger.services.reconciliation import (
    CardReconciler,
    MergeOutcome,
    ReconciliationResult,
)
from cardledger.services.validation import format_issues, validate_card, validate_csv_row

__all__ = [
    "CardReconciler",
    "CollectionStats",
    "IngestionOutcome",
    "IngestionPipeline",
    "MergeOutcome",
    "ReconciliationResult",
    "compute_stats",
    "format_issues",
    "validate_card",
    "validate_csv_row",
]
