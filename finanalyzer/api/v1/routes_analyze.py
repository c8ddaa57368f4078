from __future__ import annotations

from fastapi import APIRouter, Depends

from finanalyzer.api.dependencies import get_orchestrator, get_structured_analyzer
from finanalyzer.application.llm.orchestrator import FallbackOrchestrator
from finanalyzer.application.llm.structured_analyzer import StructuredAnalyzer
from finanalyzer.application.usecases.analyze_document import aanalyze_document
from finanalyzer.core.logging import get_logger
from finanalyzer.domain.errors import ExhaustionError, InvalidInputError
from finanalyzer.models.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ConvertResponse,
    StructuredAnalyzeResponse,
)
from finanalyzer.observability.errors import to_http_error

router = APIRouter(prefix="/v1", tags=["analyze"])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    body: AnalyzeRequest,
    orchestrator: FallbackOrchestrator | None = Depends(get_orchestrator),
) -> AnalyzeResponse:
    logger = get_logger(__name__)
    logger.info("analyze_request_received", extra={"text_length": len(body.text)})
    try:
        report = await aanalyze_document(body.text, orchestrator=orchestrator)
    except InvalidInputError as e:
        raise to_http_error("INVALID_INPUT", message=str(e))
    return AnalyzeResponse(
        source=report.source,
        backend=report.backend,
        failures=report.failures,
        analysis=report.analysis,
    )


@router.post("/analyze/structured", response_model=StructuredAnalyzeResponse)
async def analyze_structured(
    body: AnalyzeRequest,
    validate: bool = True,
    analyzer: StructuredAnalyzer | None = Depends(get_structured_analyzer),
) -> StructuredAnalyzeResponse:
    logger = get_logger(__name__)
    if analyzer is None:
        raise to_http_error("BACKENDS_UNAVAILABLE")
    try:
        document = await analyzer.aanalyze_document(body.text)
        validation = await analyzer.avalidate_document(document) if validate else None
    except InvalidInputError as e:
        raise to_http_error("INVALID_INPUT", message=str(e))
    except ExhaustionError as e:
        logger.error("structured_analysis_failed", extra={"error": str(e)})
        raise to_http_error("BACKENDS_EXHAUSTED")
    return StructuredAnalyzeResponse(document=document, validation=validation)


@router.post("/convert", response_model=ConvertResponse)
async def convert(
    body: AnalyzeRequest,
    analyzer: StructuredAnalyzer | None = Depends(get_structured_analyzer),
) -> ConvertResponse:
    logger = get_logger(__name__)
    if analyzer is None:
        raise to_http_error("BACKENDS_UNAVAILABLE")
    try:
        data = await analyzer.aconvert_to_json(body.text)
    except InvalidInputError as e:
        raise to_http_error("INVALID_INPUT", message=str(e))
    except ExhaustionError as e:
        logger.error("conversion_failed", extra={"error": str(e)})
        raise to_http_error("BACKENDS_EXHAUSTED")
    return ConvertResponse(data=data)
