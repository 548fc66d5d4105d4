"""Fetch → classify → analyze → synthesize.

:func:`analyze_url` is the single entry point.  It holds no state between
calls and never raises for an expected failure: fetch problems and invalid
budgets come back as :class:`AnalysisFailure`.
"""

import logging
from typing import Callable, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from app.models.analysis import ContentAnalysis
from app.models.fetch import FetchFailure, FetchRequest
from app.models.response import AnalysisFailure, AnalysisResult
from app.services.classifier import classify
from app.services.fetcher import DEFAULT_MAX_BYTES, DEFAULT_TIMEOUT_MS, fetch_content
from app.services.html_analyzer import analyze_html
from app.services.json_analyzer import analyze_json
from app.services.lexical import analyze_css, analyze_javascript, analyze_text
from app.services.synthesizer import synthesize_files

logger = logging.getLogger(__name__)

INVALID_REQUEST = "InvalidRequest"

_ANALYZERS: Dict[str, Callable[[str], ContentAnalysis]] = {
    "json": analyze_json,
    "css": analyze_css,
    "javascript": analyze_javascript,
    "text": analyze_text,
}


def analyze_content(raw_text: str, content_type: str, url: str) -> ContentAnalysis:
    """Classify *content_type* and run the matching analyzer over *raw_text*."""
    kind = classify(content_type)
    if kind == "html":
        return analyze_html(raw_text, url)
    return _ANALYZERS[kind](raw_text)


async def analyze_url(
    url: str,
    max_size: int = DEFAULT_MAX_BYTES,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Union[AnalysisResult, AnalysisFailure]:
    """Fetch *url* and return its analysis plus synthesized files.

    Args:
        url: An ``http`` or ``https`` URL.
        max_size: Byte budget for the response body (default 5 MiB).
        timeout_ms: Wall-clock budget for the whole fetch (default 10 s).
        transport: Optional httpx transport, forwarded to the fetcher.

    Returns:
        :class:`AnalysisResult` on success, :class:`AnalysisFailure` when the
        request is invalid or the fetch fails.
    """
    try:
        request = FetchRequest(url=url, max_bytes=max_size, timeout_ms=timeout_ms)
    except ValidationError as exc:
        logger.warning("Invalid analysis request for %s: %s", url, exc)
        return AnalysisFailure(
            error="Invalid request: "
            + "; ".join(f"{'.'.join(map(str, err['loc']))} {err['msg']}" for err in exc.errors()),
            reason=INVALID_REQUEST,
            url=url,
        )

    outcome = await fetch_content(request, transport=transport)
    if isinstance(outcome, FetchFailure):
        return AnalysisFailure(error=outcome.message, reason=outcome.reason.value, url=url)

    # Relative asset URLs resolve against the page actually served
    analysis = analyze_content(outcome.raw_text, outcome.declared_content_type, outcome.final_url)
    files = synthesize_files(analysis, url, outcome.raw_text)

    logger.info(
        "URL analyzed",
        extra={"url": url, "kind": analysis.kind, "files": len(files)},
    )
    return AnalysisResult(
        url=url,
        content_type=outcome.declared_content_type,
        content_length=outcome.byte_length,
        analysis=analysis,
        files=files,
    )
