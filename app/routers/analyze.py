import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.models.fetch import FetchFailureReason
from app.models.request import AnalyzeRequest
from app.models.response import AnalysisFailure, AnalysisResult
from app.services.pipeline import INVALID_REQUEST, analyze_url

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

_FAILURE_STATUS = {
    FetchFailureReason.INVALID_SCHEME.value: 400,
    FetchFailureReason.BLOCKED_ADDRESS.value: 400,
    INVALID_REQUEST: 400,
    FetchFailureReason.TOO_LARGE.value: 413,
    FetchFailureReason.HTTP_ERROR.value: 502,
    FetchFailureReason.NETWORK_ERROR.value: 502,
    FetchFailureReason.TIMEOUT.value: 504,
}


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    responses={
        400: {"model": AnalysisFailure},
        413: {"model": AnalysisFailure},
        502: {"model": AnalysisFailure},
        504: {"model": AnalysisFailure},
    },
    summary="Fetch and analyze a single URL",
    description=(
        "Fetches *url* within a byte and time budget, classifies the body by "
        "its `Content-Type`, analyzes it (HTML, JSON, CSS, JavaScript or plain "
        "text) and returns the analysis together with synthetic file records "
        "ready to be stored as project files.  The last file is always "
        "`_analysis.json`.\n\n"
        "Failures are returned as `{success: false, error, reason, url}`."
    ),
)
@limiter.limit("10/minute")
async def analyze(request: Request, body: AnalyzeRequest) -> AnalysisResult | JSONResponse:
    """Run the analysis pipeline for *url* and map failures to HTTP statuses."""
    url = str(body.url)
    logger.info(
        "Analyze request received",
        extra={"url": url, "max_size": body.max_size, "timeout_ms": body.timeout},
    )

    result = await analyze_url(url, max_size=body.max_size, timeout_ms=body.timeout)
    if isinstance(result, AnalysisFailure):
        status_code = _FAILURE_STATUS.get(result.reason, 502)
        logger.warning("Analysis failed for %s (%s): %s", url, result.reason, result.error)
        return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))
    return result
