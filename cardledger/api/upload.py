"""
Upload API endpoint.

Accepts one CSV file, runs it through the ingestion pipeline and answers
with the upload report. Every outcome, including internal faults, is an
``UploadReport`` body.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

from cardledger.config import settings
from cardledger.db.store import CardStore, get_store
from cardledger.models.card import get_category_scheme
from cardledger.models.report import RowError, UploadReport
from cardledger.services.ingestion import IngestionPipeline
from cardledger.services.reconciliation import CardReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])


def get_pipeline(
    store: Annotated[CardStore | None, Depends(get_store)],
) -> IngestionPipeline:
    """Dependency that wires the pipeline to the configured store, if any."""
    reconciler = CardReconciler(store) if store is not None else None
    return IngestionPipeline(scheme=get_category_scheme(), reconciler=reconciler)


def _report_response(report: UploadReport, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=report.to_json())


@router.post(
    "/upload",
    response_model=UploadReport,
    responses={
        400: {"model": UploadReport},
        413: {"model": UploadReport},
        500: {"model": UploadReport},
    },
)
async def upload_cards(
    pipeline: Annotated[IngestionPipeline, Depends(get_pipeline)],
    file: Annotated[UploadFile | None, File(description="CSV file of cards")] = None,
) -> JSONResponse:
    """
    Parse, validate and store an uploaded CSV of cards.

    Cards matching an existing (name, set, condition) add to its quantity.

    Status codes:
    - 200: file was parsed; check ``errors``/``totalErrors`` for rejected rows
    - 400: no file, or the file is not well-formed CSV
    - 413: file larger than the configured upload limit
    - 500: unexpected failure
    """
    if file is None:
        return _report_response(UploadReport.no_file(), status.HTTP_400_BAD_REQUEST)

    try:
        limit = settings.max_upload_bytes
        content = await file.read(limit + 1)
        if len(content) > limit:
            report = UploadReport.failed(
                [RowError(row=0, message=f"File exceeds the {limit} byte upload limit")]
            )
            return _report_response(report, 413)

        outcome = await pipeline.ingest(content)
    except Exception:
        logger.exception("Upload of %s failed", file.filename)
        return _report_response(
            UploadReport.internal_error(), status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    finally:
        await file.close()

    report = outcome.report
    if outcome.persistence is not None and outcome.persistence.failures:
        logger.warning(
            "%d of %d validated cards from %s were not persisted",
            len(outcome.persistence.failures),
            report.total_processed,
            file.filename,
        )

    # Files rejected before row validation carry no cards list
    status_code = status.HTTP_400_BAD_REQUEST if report.cards is None else status.HTTP_200_OK
    return _report_response(report, status_code)
