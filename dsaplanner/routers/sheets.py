"""
Sheet ingestion and classification API routes.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ..config import Settings, get_settings
from ..errors import ClassificationFailure, ParseFailure
from ..schemas import (
    AnalyzeBatchRequest, AnalyzeBatchResponse, AnalyzeRequest, AnalyzeResponse,
    BatchFailureResponse, ImportUrlsRequest, ProblemListResponse, ProblemSchema
)
from ..services.classification_service import ClassificationBatcher, get_classification_batcher
from ..services.problem_service import Problem, ProblemAggregator, summarize_topics
from ..services.row_extractor import RowPolicy
from ..services.sheet_service import fetch_sheet, read_sheet_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sheets", tags=["sheets"])


def _new_aggregator(settings: Settings) -> ProblemAggregator:
    return ProblemAggregator(
        policy=RowPolicy(strict=settings.strict_rows, placeholder_names=settings.placeholder_names)
    )


def _problem_list(aggregator: ProblemAggregator, settings: Settings, errors: List[str]) -> ProblemListResponse:
    problems = aggregator.results(settings.max_problems)
    if not problems:
        detail = "No valid problems found. Ensure your sheet has problem names or links."
        if errors:
            detail = f"{detail} Errors: {'; '.join(errors)}"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    return ProblemListResponse(
        problems=[ProblemSchema.model_validate(p) for p in problems],
        summary=summarize_topics(problems),
        skipped_rows=aggregator.skipped_rows,
        errors=errors,
    )


def _to_problems(items: List[ProblemSchema]) -> List[Problem]:
    return [Problem(**item.model_dump()) for item in items]


@router.post("/parse", response_model=ProblemListResponse)
async def parse_sheets(
    files: List[UploadFile] = File(...),
    settings: Settings = Depends(get_settings),
):
    """
    Parse uploaded CSV/XLSX sheets into deduplicated candidate problems.
    Unreadable files are reported in `errors` and skipped.
    """
    if len(files) > settings.max_sheets:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.max_sheets} sheets can be uploaded at once",
        )

    aggregator = _new_aggregator(settings)
    errors = []
    for upload in files:
        filename = upload.filename or "Sheet"
        content = await upload.read()
        try:
            rows = read_sheet_rows(filename, content)
        except ParseFailure as e:
            logger.warning("Skipping %s: %s", filename, e)
            errors.append(f"{filename}: {e}")
            continue
        aggregator.add_source(filename, rows)

    return _problem_list(aggregator, settings, errors)


@router.post("/import-url", response_model=ProblemListResponse)
async def import_sheet_urls(
    request: ImportUrlsRequest,
    settings: Settings = Depends(get_settings),
):
    """Fetch public Google Sheets (or CSV URLs) and parse them like uploads."""
    if len(request.urls) > settings.max_sheets:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.max_sheets} sheets can be imported at once",
        )

    aggregator = _new_aggregator(settings)
    errors = []
    for item in request.urls:
        try:
            rows = await fetch_sheet(item.url)
        except ParseFailure as e:
            logger.warning("Skipping %s: %s", item.url, e)
            errors.append(str(e))
            continue
        aggregator.add_source(item.name or "Sheet", rows)

    return _problem_list(aggregator, settings, errors)


@router.post("/analyze-batch", response_model=AnalyzeBatchResponse)
async def analyze_batch(
    request: AnalyzeBatchRequest,
    batcher: ClassificationBatcher = Depends(get_classification_batcher),
):
    """
    Classify a single batch (max 25 problems).
    The caller decides how to retry or fall back when this fails.
    """
    try:
        problems = await batcher.classify_batch(_to_problems(request.problems), api_key=request.api_key)
    except ClassificationFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return AnalyzeBatchResponse(problems=[ProblemSchema.model_validate(p) for p in problems])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_problems(
    request: AnalyzeRequest,
    batcher: ClassificationBatcher = Depends(get_classification_batcher),
):
    """
    Classify a full problem list in batches.
    Failed batches keep their extracted values and are listed in `failed_batches`.
    """
    run = await batcher.classify_problems(
        _to_problems(request.problems),
        batch_size=request.batch_size,
        api_key=request.api_key,
    )

    return AnalyzeResponse(
        problems=[ProblemSchema.model_validate(p) for p in run.problems],
        summary=summarize_topics(run.problems),
        failed_batches=[BatchFailureResponse.model_validate(f) for f in run.failed_batches],
        total_batches=run.total_batches,
        partial=run.partial,
    )
