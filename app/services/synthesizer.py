"""Turn a finished analysis into synthetic file records.

One or more content files come first, depending on the content kind, followed
by a single ``_analysis.json`` summary.  Every file shares the same directory,
derived from the source URL's hostname.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from app.models.analysis import ContentAnalysis, HtmlAnalysis
from app.models.files import Language, SyntheticFile

SUMMARY_FILENAME = "_analysis.json"

# kind -> (filename, language) for kinds that produce a single raw-content file
_RAW_FILES: Dict[str, Tuple[str, Language]] = {
    "json": ("data.json", "JSON"),
    "css": ("styles.css", "CSS"),
    "javascript": ("script.js", "JavaScript"),
    "text": ("content.txt", "Text"),
}

_HTML_STATISTICS = ("scripts", "stylesheets", "forms", "links", "images", "frameworks", "issues")


def directory_for(url: str) -> str:
    """Return ``/`` plus the URL hostname with dots replaced by underscores."""
    hostname = urlparse(url).hostname or ""
    return "/" + hostname.replace(".", "_")


def _make_file(filename: str, filepath: str, content: str, language: Language) -> SyntheticFile:
    return SyntheticFile(
        filename=filename,
        filepath=filepath,
        content=content,
        size_bytes=len(content.encode("utf-8")),
        language=language,
    )


def _statistics(analysis: ContentAnalysis) -> Dict[str, Any]:
    if isinstance(analysis, HtmlAnalysis):
        if analysis.error:
            return {}
        data = analysis.model_dump(include=set(_HTML_STATISTICS))
        return {key: data[key] for key in _HTML_STATISTICS}
    return analysis.model_dump(exclude={"kind", "structure", "text", "error"}, exclude_none=True)


def _summary(analysis: ContentAnalysis, url: str, timestamp: datetime) -> str:
    summary: Dict[str, Any] = {
        "url": url,
        "type": analysis.kind,
        "timestamp": timestamp.isoformat().replace("+00:00", "Z"),
        "statistics": _statistics(analysis),
    }
    error = getattr(analysis, "error", None)
    if error:
        summary["error"] = error
    return json.dumps(summary, indent=2, ensure_ascii=False)


def synthesize_files(
    analysis: ContentAnalysis,
    url: str,
    raw_text: str,
    timestamp: Optional[datetime] = None,
) -> List[SyntheticFile]:
    """Build the ordered file list for *analysis* of the document at *url*.

    Args:
        analysis: The completed analysis.
        url: Source URL; its hostname names the directory.
        raw_text: The fetched body, written verbatim to the main content file.
            Used even when the analysis is degraded, so the raw content is
            never lost.
        timestamp: Time recorded in the summary, defaults to now (UTC).

    Returns:
        Content files followed by ``_analysis.json``.
    """
    filepath = directory_for(url)
    files: List[SyntheticFile] = []

    if isinstance(analysis, HtmlAnalysis):
        files.append(_make_file("index.html", filepath, raw_text, "HTML"))
        if analysis.assets is not None:
            inline_scripts = "\n".join(analysis.assets.inline_scripts)
            if inline_scripts:
                files.append(_make_file("scripts.js", filepath, inline_scripts, "JavaScript"))
            inline_styles = "\n".join(analysis.assets.inline_styles)
            if inline_styles:
                files.append(_make_file("styles.css", filepath, inline_styles, "CSS"))
    else:
        filename, language = _RAW_FILES[analysis.kind]
        files.append(_make_file(filename, filepath, raw_text, language))

    timestamp = timestamp or datetime.now(timezone.utc)
    files.append(_make_file(SUMMARY_FILENAME, filepath, _summary(analysis, url, timestamp), "JSON"))
    return files
